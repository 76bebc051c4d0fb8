# Native currency values are integer micro units (6 decimals)
MICRO_MULTIPLIER = 1_000_000

# Largest value a BigIntegerField column holds; every token amount and
# native value handled by the services must stay at or below it.
MAX_AMOUNT = 2 ** 63 - 1
