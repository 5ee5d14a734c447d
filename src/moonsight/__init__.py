"""Is the moon up? Visibility and rise/set forecasting for a location."""
