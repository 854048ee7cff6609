"""Shell commands exposing nullscope functionalities.

This module contains the shell commands that can be used to interact with nullscope.

Report
======

``nullscope-report`` prints a report of the missing data of a CSV file::

    nullscope-report --null-value "" loans.csv

It can also show how missing entries distribute across the values
of a column, cross tabulate two columns and print summary statistics::

    nullscope-report --group-by servicer_name --crosstab servicer_name loan_age --describe loans.csv

"""
