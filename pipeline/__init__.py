"""Pipeline components.

This package contains the row validator, the record normalizer, the report
emitter and the CSV ingestion pipeline that ties them to a record writer.
"""
