import pytest
from pydantic import ValidationError

from saddle_search.iteration_log import DimerLog, ODELog


def test_dimer_log_appends_all_columns():
    log = DimerLog()
    log.append(0, 2, 1.0, 0.5)
    log.append(3, 4, 0.1, 0.05)

    assert len(log) == 2
    assert log.numE == [0, 3]
    assert log.numdE == [2, 4]
    assert log.res_trans == [1.0, 0.1]
    assert log.res_rot == [0.5, 0.05]


def test_log_rejects_wrong_number_of_residuals():
    with pytest.raises(ValueError):
        ODELog().append(0, 1, 1.0, 2.0)
    with pytest.raises(ValueError):
        DimerLog().append(0, 1, 1.0)


def test_log_requires_equal_length_columns():
    with pytest.raises(ValidationError):
        DimerLog(numE=[0], numdE=[], res_trans=[], res_rot=[])


def test_log_to_dataframe():
    log = ODELog()
    log.append(0, 1, 2.0)
    log.append(0, 2, 1.0)

    df = log.to_dataframe()

    assert list(df.columns) == ["numE", "numdE", "res"]
    assert df["res"].tolist() == [2.0, 1.0]
