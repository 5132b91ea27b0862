from .csv_record_provider import CsvRecordProvider
from .sql_record_provider import SqlRecordProvider, build_database_url

__all__ = ["CsvRecordProvider", "SqlRecordProvider", "build_database_url"]
