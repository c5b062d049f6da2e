"""sudoshim.system - Host discovery helpers."""
