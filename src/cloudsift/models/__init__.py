"""Data models shared by the field mapper, synchronizer, compiler and batcher."""
