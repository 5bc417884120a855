#!/usr/bin/env python3

from typing import List

from config import GA_CONFIG
from grouper_base import ScanChainGrouper

# ================== GENETIC SEARCH ==================

class GeneticGrouper(ScanChainGrouper):
    """
    Population-based grouping.

    Each generation: roulette selection on linearly scaled fitness
    (fitness_base - cost) with the fittest individual copied first,
    two-point crossover between disjoint random parent pairs, and
    mutation of two random gene positions. The fittest individual of the
    previous generation is put back unchanged after crossover and mutation,
    so the best cost per generation never increases. Stops after stall_limit
    generations without a new best cost.
    """

    name = 'ga'

    def __init__(self, model, cost=None, seed=None, logger=None,
                 population: int = GA_CONFIG['population'],
                 scaling_c: float = GA_CONFIG['scaling_c'],
                 fitness_base: float = GA_CONFIG['fitness_base'],
                 stall_limit: int = GA_CONFIG['stall_limit'],
                 mutation_odds: int = GA_CONFIG['mutation_odds'],
                 max_generations: int = GA_CONFIG['max_generations']):
        super().__init__(model, cost=cost, seed=GA_CONFIG['seed'] if seed is None else seed, logger=logger)
        if population < 2 or population % 2:
            raise ValueError(f"population must be an even number >= 2, got {population}")
        self.population_size = population
        self.scaling_c = scaling_c
        self.fitness_base = fitness_base
        self.stall_limit = stall_limit
        self.mutation_odds = mutation_odds
        self.max_generations = max_generations

        self.population: List[List[int]] = []
        self.generation_best: List[int] = []

    # -------------------- operators --------------------

    def initial_population(self, group_count: int):
        self.population = [[self.rng.randrange(group_count) for _ in range(self.chain_count)]
                           for _ in range(self.population_size)]

    def cost_list(self, group_count: int) -> List[int]:
        return [self.cost.evaluate(individual, group_count) for individual in self.population]

    @staticmethod
    def fittest_idx(costs: List[int]) -> int:
        return min(range(len(costs)), key=lambda i: (costs[i], i))

    def scaled_fitness(self, costs: List[int]) -> List[float]:
        """Linear scaling f' = a*f + b keeping the mean and mapping the max to scaling_c * mean"""
        fitness = [self.fitness_base - c for c in costs]
        f_max = max(fitness)
        f_avg = sum(fitness) / len(fitness)
        if f_max == f_avg:
            return [1.0] * len(fitness)
        a = f_avg * (self.scaling_c - 1) / (f_max - f_avg)
        b = f_avg * (f_max - self.scaling_c * f_avg) / (f_max - f_avg)
        scaled = [max(0.0, a * f + b) for f in fitness]
        if sum(scaled) <= 0:
            return [1.0] * len(fitness)
        return scaled

    def natural_selection(self, costs: List[int]):
        scaled = self.scaled_fitness(costs)
        total = sum(scaled)
        cumulative = []
        acc = 0.0
        for s in scaled:
            acc += s / total
            cumulative.append(acc)

        selected = [list(self.population[self.fittest_idx(costs)])]
        for _ in range(1, self.population_size):
            roulette = self.rng.random()
            chosen = len(cumulative) - 1
            for j, p in enumerate(cumulative):
                if roulette < p:
                    chosen = j
                    break
            selected.append(list(self.population[chosen]))
        self.population = selected

    def crossover(self):
        """Swap genes [idx0, idx1] between every pair of a random pairing"""
        if self.chain_count < 2:
            return
        idx0, idx1 = sorted(self.rng.sample(range(self.chain_count), 2))
        order = list(range(self.population_size))
        self.rng.shuffle(order)
        for k in range(0, len(order), 2):
            p0 = self.population[order[k]]
            p1 = self.population[order[k + 1]]
            p0[idx0:idx1 + 1], p1[idx0:idx1 + 1] = p1[idx0:idx1 + 1], p0[idx0:idx1 + 1]

    def mutation(self, group_count: int):
        if self.chain_count == 0:
            return
        idx0 = self.rng.randrange(self.chain_count)
        idx1 = self.rng.randrange(self.chain_count)
        for individual in self.population:
            if self.rng.randrange(self.mutation_odds) < 1:
                individual[idx0] = self.rng.randrange(group_count)
            if self.rng.randrange(self.mutation_odds) < 1:
                individual[idx1] = self.rng.randrange(group_count)

    # -------------------- main loop --------------------

    def calculate_clocking(self, group_count: int) -> List[int]:
        self.initial_population(group_count)
        self.log.info("Initial population generated")
        costs = self.cost_list(group_count)

        best_idx = self.fittest_idx(costs)
        best = list(self.population[best_idx])
        best_cost = costs[best_idx]
        self.generation_best = [best_cost]

        generation = 0
        stall = self.stall_limit
        while stall > 0 and generation < self.max_generations:
            generation += 1

            self.natural_selection(costs)
            elite = list(self.population[0])
            self.crossover()
            self.mutation(group_count)
            self.population[0] = elite

            costs = self.cost_list(group_count)
            gen_idx = self.fittest_idx(costs)
            gen_cost = costs[gen_idx]
            self.generation_best.append(gen_cost)

            if gen_cost < best_cost:
                best_cost = gen_cost
                best = list(self.population[gen_idx])
                stall = self.stall_limit
            else:
                stall -= 1

            self.log.debug("Generation %d lowest cost %d", generation, gen_cost)

        self.log.info("Genetic search finished after %d generations, best cost %d", generation, best_cost)
        return best
