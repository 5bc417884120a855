import json

from main import main


def read_summary(directory, method):
    with open(directory / f"tiny_footprints_{method}_summary.json") as f:
        return json.load(f)


def test_strategy_run_writes_outputs(footprint_file, tmp_path):
    zpl = tmp_path / "tiny.zpl"
    table = tmp_path / "tiny.tex"
    plot = tmp_path / "tiny.dat"
    rc = main(['--data', footprint_file, '--clk', '2', '--prt-method', 'bgc', '--zpl', str(zpl),
               '--table', str(table), '--plot', str(plot), '--save-summary', '--summary-dir', str(tmp_path)])
    assert rc == 0
    assert zpl.read_text().splitlines()[-1].startswith("minimize conflict:")
    assert len(table.read_text().splitlines()) == 3
    assert plot.read_text() == f" 0 {read_summary(tmp_path, 'bgc')['group_cost'][0]}\n"
    assert read_summary(tmp_path, 'bgc')['cost'] == 0


def test_random_cases(footprint_file, tmp_path):
    plot = tmp_path / "random.dat"
    rc = main(['--data', footprint_file, '--clk', '2', '--prt-method', 'random', '--prt-cases', '3',
               '--prt-start', '5', '--plot', str(plot)])
    assert rc == 0
    lines = plot.read_text().splitlines()
    assert [line.split()[0] for line in lines] == ['0', '1', '2']


def test_solution_file_overrides_grouping(footprint_file, tmp_path):
    sol = tmp_path / "tiny.sol"
    sol.write_text("x_5_0_1 1\nx_0_1_0 1\ny_6_2_1 1\n")
    rc = main(['--data', footprint_file, '--clk', '2', '--prt-method', 'seq', '--sol', str(sol),
               '--save-summary', '--summary-dir', str(tmp_path)])
    assert rc == 0
    summary = read_summary(tmp_path, 'seq')
    assert summary['clocking'] == [1, 0, 1]
    assert summary['cost'] == 1


def test_single_group(footprint_file, tmp_path):
    rc = main(['--data', footprint_file, '--prt-method', 'bgc', '--zpl', str(tmp_path / "one.zpl"),
               '--save-summary', '--summary-dir', str(tmp_path)])
    assert rc == 0
    assert read_summary(tmp_path, 'bgc')['cost'] == 3
    assert (tmp_path / "one.zpl").exists()


def test_bad_arguments(footprint_file, tmp_path):
    assert main(['--circuit', str(tmp_path / "c.json")]) == 1
    assert main(['--data', str(tmp_path / "missing.txt")]) == 1
    assert main(['--data', footprint_file, '--clk', '0']) == 1
    assert main(['--data', footprint_file, '--clk', '2', '--prt-method', 'annealing']) == 1


def test_incomplete_solution_file_fails(footprint_file, tmp_path):
    sol = tmp_path / "partial.sol"
    sol.write_text("x_5_0_1 1\n")
    rc = main(['--data', footprint_file, '--clk', '2', '--prt-method', 'seq', '--sol', str(sol),
               '--save-summary', '--summary-dir', str(tmp_path)])
    assert rc == 1
    summary = read_summary(tmp_path, 'seq')
    assert summary['status'] == 'incomplete'
    assert summary['unassigned_chains'] == [1, 2]
    assert summary['clocking'] == [1, 0, 0]


def test_summary_keeps_strategy_status(footprint_file, tmp_path):
    assert main(['--data', footprint_file, '--clk', '2', '--prt-method', 'ilp',
                 '--save-summary', '--summary-dir', str(tmp_path)]) == 0
    summary = read_summary(tmp_path, 'ilp')
    assert summary['status'] == 'optimal'
    assert 'unassigned_chains' not in summary

    assert main(['--data', footprint_file, '--save-summary', '--summary-dir', str(tmp_path)]) == 0
    assert read_summary(tmp_path, 'random')['status'] == 'trivial'


def test_activity_validation(footprint_file, tmp_path, caplog):
    activity = tmp_path / "activity.csv"
    activity.write_text("a0,a1,b0,b1,c0,overall\n1,4,0,0,2,7\n0,1,3,3,2,9\n")
    rc = main(['--data', footprint_file, '--clk', '2', '--prt-method', 'seq', '--sim', str(activity)])
    assert rc == 0
    assert "WSA evaluation of" in caplog.text

    assert main(['--data', footprint_file, '--clk', '2', '--prt-method', 'seq',
                 '--sim', str(tmp_path / "missing.csv")]) == 1
