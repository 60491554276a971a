"""
Stylo: a small local log sink.

  store.py     : the SQLite log table and its write discipline
  decode.py    : datagram payload → (source, severity, message)
  daemon.py    : the long-running socket listener
  oneshot.py   : insert one line and exit
  retention.py : drop old rows, compact the file
  client.py    : send a line to a running daemon
  heartbeat.py : optional status pings for the daemon
  config.py    : paths and knobs from the environment
  cli.py       : command-line dispatch
"""

__version__ = "0.1.0"
