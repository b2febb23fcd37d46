"""tabrelay: remote-controllable browser tabs addressed by session id."""

__version__ = "0.3.0"
