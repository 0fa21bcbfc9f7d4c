"""Console entry points for osmosis-pools."""
