import io
import logging
import os

import pytest

from zpl_model import ZplModel


def model_text(model, group_count=2, thr=0):
    out = io.StringIO()
    zpl = ZplModel(model, skew_threshold=thr)
    zpl.write(out, group_count)
    return zpl, out.getvalue().splitlines()


def test_model_data(min_model):
    zpl = ZplModel(min_model)
    assert zpl.chain2aggressors == [{1, 2}, set(), {0, 1}]
    assert zpl.impacts == [{0, 1}, {1, 2}, set()]
    assert zpl.aregions == [[[1], [2]], [[]], [[0, 0], [1]]]


def test_variables(min_model):
    _, lines = model_text(min_model)
    blank = lines.index("")
    variables = lines[:blank]
    assert variables[:2] == ["var x_2_0_0 binary;", "var x_2_0_1 binary;"]
    assert "var x_0_2_1 binary;" in variables
    assert "var z_1_2_0 binary;" in variables
    assert "var y_2_1_1 binary;" in variables
    # self impact cells get no x or z variables
    assert "var x_1_0_0 binary;" not in variables
    assert len(variables) == 20


def test_constraints(min_model):
    _, lines = model_text(min_model)
    assert "subto c0: vif x_2_0_0 == 1 then x_2_0_0 == 1 else x_2_0_0 == 0 end;" in lines
    assert ("subto c2: vif x_0_2_0 == 1 then x_0_2_0 + x_1_2_0 == 2 "
            "else x_0_2_0 + x_1_2_0 == 0 end;") in lines
    assert "subto c8: x_2_0_0 + x_2_0_1 == 1;" in lines
    assert "subto c15: x_2_0_0 - y_0_0_0 == 0;" in lines
    assert "subto c17: vif x_2_0_0 * ( y_2_1_0 ) >= 1 then z_2_0_0 == 1 else z_2_0_0 == 0 end;" in lines
    assert ("subto c21: vif x_1_2_0 * ( y_1_0_0 + y_1_1_0 ) >= 1 then "
            "z_1_2_0 == 1 else z_1_2_0 == 0 end;") in lines


def test_threshold_constraints_and_objective(min_model):
    zpl, lines = model_text(min_model)
    assert zpl.conflict == 2
    assert "var conf0 binary;" in lines
    assert ("subto c23: vif vabs( - z_2_0_0 - z_2_0_1 + 1 - 0 ) > 0 "
            "then conf0 == 1 else conf0 == 0 end;") in lines
    assert ("subto c24: vif vabs( + z_0_2_0 + z_0_2_1 + z_0_2_0 + z_0_2_1 - z_1_2_0 - z_1_2_1 + 0 - 0 ) > 0 "
            "then conf1 == 1 else conf1 == 0 end;") in lines
    assert lines[-1] == "minimize conflict: + conf0 + conf1;"


def test_self_impact_only_difference():
    from conflict_model import ConflictModel
    # both aggressors of the first cell lie in the chain's own impact set
    model = ConflictModel.from_sets([{0, 1}, {2}], [[[0, 1], []], [[2]]])
    zpl, lines = model_text(model, thr=1)
    assert zpl.conflict == 1
    assert "subto c" in lines[-2] and lines[-2].endswith(": conf0 == 1;")


def test_constant_objective_warns(min_model, caplog):
    with caplog.at_level(logging.WARNING):
        zpl, lines = model_text(min_model, thr=5)
    assert zpl.conflict == 0
    assert lines[-1] == "minimize conflict: 0;"
    assert "objective is constant" in caplog.text


def test_write_model_file(min_model, tmp_path):
    path = tmp_path / "min.zpl"
    assert ZplModel(min_model).write_model(str(path), 2) == 2
    assert path.read_text().endswith("minimize conflict: + conf0 + conf1;\n")


def test_write_model_removes_partial_file(min_model, tmp_path, monkeypatch):
    def broken(self, out, group_count, cid):
        raise RuntimeError("disk full")

    monkeypatch.setattr(ZplModel, "_write_z", broken)
    path = tmp_path / "broken.zpl"
    with pytest.raises(RuntimeError):
        ZplModel(min_model).write_model(str(path), 2)
    assert not os.path.exists(path)

# ================== READER ==================

def test_read_solution_stops_when_all_chains_seen(min_model, tmp_path):
    sol = tmp_path / "min.sol"
    sol.write_text("solution status: optimal solution found\n"
                   "objective value:                                    1\n"
                   "x_2_0_1                                            1 \t(obj:0)\n"
                   "x_2_0_0                                            0 \t(obj:0)\n"
                   "y_1_1_0                                            1 \t(obj:0)\n"
                   "x_0_2_1                                            1 \t(obj:0)\n"
                   "x_1_2_0                                            1 \t(obj:0)\n"
                   "conf1                                              1 \t(obj:1)\n")
    zpl = ZplModel(min_model)
    assert zpl.read_solution(str(sol), 2) == [1, 0, 1]
    assert zpl.unassigned_chains == []


def test_read_solution_reports_missing_chains(min_model, tmp_path, caplog):
    sol = tmp_path / "partial.sol"
    sol.write_text("x_2_0_1\ny_1_1_1 1\nx_bad_line\nconf0 1\n")
    zpl = ZplModel(min_model)
    with caplog.at_level(logging.WARNING):
        clocking = zpl.read_solution(str(sol), 2)
    assert clocking == [1, 1, 0]
    assert zpl.unassigned_chains == [2]
    assert "assigns no group to chains [2]" in caplog.text


def test_read_solution_missing_file(min_model, tmp_path):
    with pytest.raises(OSError):
        ZplModel(min_model).read_solution(str(tmp_path / "nope.sol"), 2)
