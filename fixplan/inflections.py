"""
Rails naming conventions for tables, models and foreign-key columns.

Thin layer over the ``inflection`` package (a port of ActiveSupport's
inflector) adding the table-name rules fixtures rely on.
"""

import inflection


def pluralize(word: str) -> str:
    return inflection.pluralize(word)


def singularize(word: str) -> str:
    return inflection.singularize(word)


def underscore(word: str) -> str:
    return inflection.underscore(word)


def camelize(word: str) -> str:
    return inflection.camelize(word)


def table_name_for_model(model_name: str) -> str:
    """Table name for a (possibly namespaced) model class name.

    Namespace segments are underscored and joined with ``_`` in front of the
    underscored, pluralized leaf name.

    Example:
        >>> table_name_for_model("BoardColumn")
        'board_columns'
        >>> table_name_for_model("Card::NotNow")
        'card_not_nows'
    """
    *namespace, leaf = model_name.split("::")
    table = pluralize(underscore(leaf))
    prefix = "_".join(underscore(part) for part in namespace if part)
    return f"{prefix}_{table}" if prefix else table


def table_name_for_type(type_name: str) -> str:
    """Table name for a polymorphic type tag such as ``Account``."""
    return pluralize(underscore(type_name))


def model_name_for_table(table: str) -> str:
    """Model class name materializing a table, e.g. ``board_columns`` -> ``BoardColumn``."""
    return camelize(singularize(table))


def foreign_key_column(table: str) -> str:
    """Association column a child uses to point at ``table`` (``accounts`` -> ``account``)."""
    return singularize(table)
