"""Domain layer — graph node model, input path rules, error taxonomy.

Pure Python, no third-party imports. Infrastructure and services build on
these types; nothing here touches the database or the filesystem beyond
path inspection.
"""
