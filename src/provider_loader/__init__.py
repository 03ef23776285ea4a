"""Provider loader: fetches provider extract files over SFTP and processes them."""

__version__ = "0.1.0"
