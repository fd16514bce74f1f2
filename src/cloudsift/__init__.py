"""CloudSift — Search abstraction adapter for Amazon CloudSearch.

Maps abstract field definitions to CloudSearch index fields, keeps them
synchronized, and compiles abstract queries into the CloudSearch query
dialect.
"""

__version__ = "0.1.0"
