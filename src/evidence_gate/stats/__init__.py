"""Statistical engine for evidence-gate.

Special functions, outlier detection, the Shapiro-Wilk normality test,
Welch's t-test and the Mann-Whitney U test, all in pure Python.
"""
