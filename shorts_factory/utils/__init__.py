"""Utility functions for Faceless Shorts Factory."""

from shorts_factory.utils.io_utils import decode_data_uri, is_data_uri, new_job_id

__all__ = [
    "decode_data_uri",
    "is_data_uri",
    "new_job_id",
]
