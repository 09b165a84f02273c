"""Mining schema derivation from a field catalog."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from loguru import logger

from pmmlkit.document.models import MiningField, MiningSchema
from pmmlkit.fields import DataField

_TARGET_INDEX: Final[int] = 0  # Position of the prediction target in every field catalog.


def create_mining_schema(target_field: str | None, active_fields: Iterable[str]) -> MiningSchema:
    """Build a schema from an optional target and an ordered list of active fields.

    Args:
        target_field (str | None): Target field name, or `None` for a schema
            without a target.
        active_fields (Iterable[str]): Active field names, in schema order.

    Returns:
        MiningSchema: The schema, target first.
    """
    mining_fields: list[MiningField] = []
    if target_field is not None:
        mining_fields.append(MiningField(name=target_field, usage_type="target"))
    mining_fields.extend(MiningField(name=name) for name in active_fields)
    return MiningSchema(mining_fields=tuple(mining_fields))


def catalog_mining_schema(data_fields: Sequence[DataField]) -> MiningSchema:
    """Build a schema that declares the whole catalog: its target and every input.

    Args:
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        MiningSchema: The catalog schema.
    """
    return create_mining_schema(
        data_fields[_TARGET_INDEX].name,
        (data_field.name for data_field in data_fields[_TARGET_INDEX + 1 :]),
    )


def encode_mining_schema(
    data_fields: Sequence[DataField],
    referenced_fields: Iterable[str],
    *,
    standalone: bool,
) -> MiningSchema:
    """Derive a model schema from the catalog and the fields the model actually references.

    The active fields are the catalog inputs (positions 1..n) that appear in
    `referenced_fields`, in catalog order. The target is included only for a
    standalone model; a model embedded in a segmentation leaves the target to
    its parent.

    Args:
        data_fields (Sequence[DataField]): The field catalog, target first.
        referenced_fields (Iterable[str]): Names referenced by the encoded
            model, e.g. from `collect_fields`.
        standalone (bool): Whether to declare the target field.

    Returns:
        MiningSchema: The derived schema.

    Examples:
        >>> catalog = [DataField(name=name) for name in ("y", "f1", "f2", "f3")]
        >>> schema = encode_mining_schema(catalog, {"f3", "f1"}, standalone=True)
        >>> schema.target_field, schema.active_fields
        ('y', ['f1', 'f3'])
    """
    referenced = set(referenced_fields)
    target_field = data_fields[_TARGET_INDEX].name if standalone else None
    active_fields = [
        data_field.name for data_field in data_fields[_TARGET_INDEX + 1 :] if data_field.name in referenced
    ]
    logger.debug(
        "Mining schema derived",
        target_field=target_field,
        active_fields=active_fields,
        unused_fields=len(data_fields) - 1 - len(active_fields),
    )
    return create_mining_schema(target_field, active_fields)
