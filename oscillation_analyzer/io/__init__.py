from .tables import frame_to_records, read_record_table, records_to_frame, write_record_table

__all__ = [
    "frame_to_records",
    "read_record_table",
    "records_to_frame",
    "write_record_table",
]
