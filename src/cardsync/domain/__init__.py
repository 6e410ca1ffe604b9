"""Domain layer: canonical cards, reconciliation and the integration contract."""
