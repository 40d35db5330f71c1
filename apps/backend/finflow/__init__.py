"""finflow backend: incomes, expenses and their recurring projections."""
