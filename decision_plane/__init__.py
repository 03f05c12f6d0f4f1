"""Decision plane: market context, signal generation, risk governance and position health."""
