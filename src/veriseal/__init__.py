"""veriseal: signed JSON envelopes with hash-chained timeseries."""

__version__ = "0.1.0"
