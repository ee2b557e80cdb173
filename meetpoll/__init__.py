"""Group meeting time polls: propose options, collect answers, pick the best slot."""
