"""Sparse PATCH helper shared by the per-entity merge functions."""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel


def apply_sparse(record: Any, patch: BaseModel, fields: Iterable[str]) -> list[str]:
    """
    Copy ``fields`` from ``patch`` onto ``record``.

    A field is copied only when the client sent it and its value is not
    null; everything else keeps the stored value. Returns the names of
    the fields that were written.
    """
    sent = patch.model_fields_set
    written: list[str] = []
    for name in fields:
        if name not in sent:
            continue
        value = getattr(patch, name)
        if value is None:
            continue
        setattr(record, name, value)
        written.append(name)
    return written
