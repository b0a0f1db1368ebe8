"""weekview - a week strip over an endlessly scrolling agenda."""
