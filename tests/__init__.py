"""
Test suite for the ml_recipes package.

Organised by concern:

- features/   – calendar primitives and feature derivation
- recipes/    – selectors, schema inference, the date step, recipes
- sklearn/    – the scikit-learn adapter
- data/       – table loading and saving
- cli/        – the Typer command-line interface
- conftest.py – shared fixtures
"""

__all__: list[str] = []
