"""Mixed-effects analysis of dialect loss across sociolinguistic variables."""
