import pytest

from saddle_search.dimer import BBDimer
from saddle_search.errors import ConfigurationError
from saddle_search.inputs import DimerInputs, ODEInputs, RunInputs
from saddle_search.linesearch import Backtracking
from saddle_search.ode import ODE23
from saddle_search.odedimer import ODEDimer


def test_run_inputs_toml_round_trip(tmp_path):
    ri = RunInputs(
        engine_name="quadratic",
        method="odedimer",
        ode_inputs=ODEInputs(solver="ode23", solver_kwds={"rtol": 1e-2}),
    )
    fp = tmp_path / "inputs.toml"
    ri.save(fp)

    loaded = RunInputs.open(fp)

    assert loaded == ri
    dimer = loaded.make_method()
    assert isinstance(dimer, ODEDimer)
    assert isinstance(dimer.solver, ODE23)
    assert dimer.solver.rtol == 1e-2


def test_run_inputs_rejects_unknown_entries(tmp_path):
    fp = tmp_path / "inputs.toml"
    fp.write_text('engine_name = "quadratic"\nbogus = 1\n')
    with pytest.raises(ConfigurationError):
        RunInputs.open(fp)


def test_run_inputs_rejects_unknown_method():
    with pytest.raises(ConfigurationError):
        RunInputs(method="newton")


def test_dimer_inputs_make_dimer():
    dimer = DimerInputs(linesearch="backtracking", a0_trans=0.2).make_dimer()
    assert isinstance(dimer, BBDimer)
    assert isinstance(dimer.linesearch, Backtracking)
    assert dimer.a0_trans == 0.2

    with pytest.raises(ConfigurationError):
        DimerInputs(linesearch="wolfe").make_dimer()


def test_make_method_overrides_verbosity_on_a_copy():
    ri = RunInputs()
    dimer = ri.make_method(verbose=0)
    assert dimer.verbose == 0
    assert ri.dimer_inputs.verbose == 1


def test_ode_inputs_unknown_solver():
    with pytest.raises(ConfigurationError):
        ODEInputs(solver="rk45").make_solver()


def test_solver_kwds_may_set_verbose():
    solver = ODEInputs(verbose=1, solver_kwds={"verbose": 0, "C1": 0.05}).make_solver()
    assert solver.verbose == 0
    assert solver.C1 == 0.05

    with pytest.raises(ConfigurationError):
        ODEInputs(solver_kwds={"tolerance": 1.0}).make_solver()


def test_run_inputs_rejects_unknown_nested_entries(tmp_path):
    fp = tmp_path / "inputs.toml"
    fp.write_text('method = "bbdimer"\n\n[dimer_inputs]\na0_trans = 0.1\nstep = 2\n')
    with pytest.raises(ConfigurationError):
        RunInputs.open(fp)

    with pytest.raises(ConfigurationError):
        RunInputs(ode_inputs={"solver": "ode23", "rtol": 1e-2})
