import pyarrow.compute as pc

from nullscope import session
from nullscope.compute import CountRowsAggregation
from nullscope.dataframe import FunctionCallExpression, col, is_not_null, is_null

session.start()
df = session.read_csv("data/loans.csv").cache()
df.print_schema()
print(df.count())

mths_nulls = df.filter(is_null(col("mths_remng")))
print(mths_nulls.count())
mths_nulls.group_by("servicer_name").agg(Nulls=CountRowsAggregation("servicer_name")).show()

both = FunctionCallExpression(pc.and_, is_not_null(col("mths_remng")), is_not_null(col("aj_mths_remng")))
print(df.filter(both).count(), df.dropna(subset=["mths_remng", "aj_mths_remng"]).count())
print(df.dropna(how="any").count(), df.dropna(how="all").count(), df.dropna(min_non_nulls=5).count())

df.fillna({"act_endg_upb": 12345}).show(10)
df.crosstab("servicer_name", "mths_remng").show(5)
df.describe().show()

session.stop()
