"""Count-capped Places Insights querying with adaptive radius scaling."""
