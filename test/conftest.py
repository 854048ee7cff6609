import pytest

from nullscope import session


@pytest.fixture(autouse=True)
def no_active_session():
    """Make sure every test starts and ends without an active session."""
    session.stop()
    yield
    session.stop()


LOANS_CSV = """loan_id,loan_age,mths_remng,aj_mths_remng,act_endg_upb,servicer_name
1,10,350,348,100.5,Bank A
2,11,,,,Bank A
3,12,348,,98.25,
4,13,347,345,97.0,Bank B
5,14,,,,
6,15,345,343,95.5,Bank B
"""


@pytest.fixture
def loans_csv(tmp_path):
    """A small loan performance dataset with missing entries."""
    path = tmp_path / "loans.csv"
    path.write_text(LOANS_CSV)
    return str(path)
