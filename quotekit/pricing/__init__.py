"""
Deterministic pricing engines.

Pure Python math. No I/O, no database, no HTTP.
Curtains/blinds and tile quotes are priced by two separate engines that
share only the numeric helpers in numeric.py.
"""
