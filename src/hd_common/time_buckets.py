"""Time bucket arithmetic. All timestamps are integer unix seconds."""


def bucket_of(timestamp: int, bucket_size: int) -> int:
    """Start of the bucket containing timestamp: 5400 -> 3600 for hourly buckets."""
    return timestamp // bucket_size * bucket_size


def is_aligned(timestamp: int, bucket_size: int) -> bool:
    return timestamp % bucket_size == 0


def validate_bucket_size(bucket_size: int) -> None:
    if bucket_size <= 0:
        raise ValueError(f"Bucket size must be a positive number of seconds, got {bucket_size}")
