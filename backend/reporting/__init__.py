"""Display formatting and chart series for report views."""
