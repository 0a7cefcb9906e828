"""Report computation: ingestion, grouping, marks, grading, ranking, exports.

Nothing in here talks to Flask; views pass feed rows in and get plain
records back.
"""
