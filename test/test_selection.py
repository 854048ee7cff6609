import pyarrow as pa
import pyarrow.compute as pc
import pytest

from nullscope.compute import (
    FunctionCallExpression,
    PyArrowTableDataSource,
    col,
    if_else,
    is_empty,
    is_null,
    lit,
)
from nullscope.compute.selection import ProjectNode


@pytest.fixture
def mock_data():
    """Create a mock PyArrow Table for testing."""
    data = {
        "loan_age": [1, 2, 3],
        "mths_remng": [4, None, 6],
        "servicer_name": ["Bank A", "", "Bank B"],
    }
    return pa.table(data)


def test_init_and_str(mock_data):
    """Test the initialization and string representation of ProjectNode."""
    expressions = {"total": FunctionCallExpression(pc.add, col("loan_age"), col("mths_remng"))}
    project_node = ProjectNode(
        ["loan_age"], expressions, PyArrowTableDataSource(mock_data)
    )
    assert (
        str(project_node)
        == "ProjectNode(select=['loan_age'], project={'total': pyarrow.compute.add(ColumnRef(loan_age),ColumnRef(mths_remng))}, "
        "child=PyArrowTableDataSource(columns=['loan_age', 'mths_remng', 'servicer_name'], rows=3))"
    )


def test_select_columns(mock_data):
    """Test selecting specific columns."""
    project_node = ProjectNode(["loan_age", "mths_remng"], {}, PyArrowTableDataSource(mock_data))
    batches = list(project_node.batches())
    assert len(batches) == 1
    batch = batches[0]
    assert batch.column_names == ["loan_age", "mths_remng"]
    assert batch.column(1).to_pylist() == [4, None, 6]


def test_project_missing_flag(mock_data):
    """Test projecting a new column flagging missing values."""
    expressions = {"mths_missing": is_null(col("mths_remng"))}
    project_node = ProjectNode(["loan_age"], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["loan_age", "mths_missing"]
    assert batch.column(1).to_pylist() == [False, True, False]


def test_replace_existing_column_keeps_position(mock_data):
    """Test projecting a column with the name of an existing one."""
    expressions = {
        "servicer_name": if_else(
            is_empty(col("servicer_name")), lit("Unknown"), col("servicer_name")
        )
    }
    project_node = ProjectNode(None, expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["loan_age", "mths_remng", "servicer_name"]
    assert batch.column(2).to_pylist() == ["Bank A", "Unknown", "Bank B"]


def test_replace_selected_column_is_not_duplicated(mock_data):
    expressions = {"loan_age": FunctionCallExpression(pc.multiply, col("loan_age"), lit(12))}
    project_node = ProjectNode(["loan_age"], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["loan_age"]
    assert batch.column(0).to_pylist() == [12, 24, 36]


def test_multiple_project_columns(mock_data):
    """Test projecting columns that depend on previously projected ones."""
    expressions = {
        "total": FunctionCallExpression(pc.add, col("loan_age"), col("mths_remng")),
        "total_missing": is_null(col("total")),
    }
    project_node = ProjectNode(["loan_age"], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["loan_age", "total", "total_missing"]
    assert batch.column(1).to_pylist() == [5, None, 9]
    assert batch.column(2).to_pylist() == [False, True, False]


def test_project_constant(mock_data):
    project_node = ProjectNode(["loan_age"], {"source": lit("hfpc")}, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column(1).to_pylist() == ["hfpc", "hfpc", "hfpc"]


def test_project_with_no_columns(mock_data):
    """Test projecting with no columns selected or projected."""
    project_node = ProjectNode([], {}, PyArrowTableDataSource(mock_data))
    batches = list(project_node.batches())
    assert len(batches) == 1
    assert batches[0].num_columns == 0
