"""Record and draft models.

Manifesto:
    The directory returns richer user objects than the management form
    edits (``address.suite``, ``address.geo``, ``company.catchPhrase``…).
    ``Record`` keeps every field it was given so that the cache snapshot
    and the remote payload round-trip unchanged; ``Draft`` is exactly the
    form shape and nothing more.

Tags:
    roster, models, pydantic, record, draft

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Records (canonical collection entries)
# ---------------------------------------------------------------------------


class Address(BaseModel):
    """Postal address of a record; unknown keys are preserved."""

    model_config = ConfigDict(extra="allow", frozen=True)

    street: str | None = None
    city: str | None = None


class Company(BaseModel):
    """Employer of a record; unknown keys are preserved."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str | None = None


class Record(BaseModel):
    """One managed person.

    ``id`` is positive and stable once assigned.  Serialization only emits
    fields that were actually provided, so ``Record.model_validate(d).to_payload()
    == d`` for any valid directory payload ``d``.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int = Field(gt=0)
    name: str = Field(min_length=1)
    email: str = ""
    phone: str = ""
    username: str = ""
    address: Address | None = None
    company: Company | None = None
    website: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict of the fields this record carries."""
        return self.model_dump(mode="json", exclude_unset=True)

    def merged_with(self, draft: Draft) -> Record:
        """Return a copy with the draft's fields laid over this record.

        Draft values win.  Nested ``address`` / ``company`` objects are merged
        key by key so keys the form does not carry survive.  ``id`` never
        changes.
        """
        merged = self.to_payload()
        for key, value in draft.to_payload().items():
            current = merged.get(key)
            if isinstance(value, dict) and isinstance(current, dict):
                merged[key] = {**current, **value}
            else:
                merged[key] = value
        merged["id"] = self.id
        return Record.model_validate(merged)


# ---------------------------------------------------------------------------
# Draft (form state)
# ---------------------------------------------------------------------------

# Dotted field paths understood by Draft.with_field and used as error keys
FIELD_PATHS = (
    "name",
    "email",
    "phone",
    "username",
    "address.street",
    "address.city",
    "company.name",
    "website",
)

# Form input names used by the original management screen
FIELD_ALIASES = {
    "street": "address.street",
    "city": "address.city",
    "companyName": "company.name",
}


class AddressDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = ""
    city: str = ""


class CompanyDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""


class Draft(BaseModel):
    """Scratch record edited by the operator before a create or update.

    Immutable: every edit returns a new draft, so a ``SessionState`` can be
    compared and snapshotted safely.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    username: str = ""
    address: AddressDraft = Field(default_factory=AddressDraft)
    company: CompanyDraft = Field(default_factory=CompanyDraft)
    website: str = ""

    @classmethod
    def from_record(cls, record: Record) -> Draft:
        """Seed a draft from an existing record (missing values become ``""``)."""
        address = record.address or Address()
        company = record.company or Company()
        return cls(
            name=record.name,
            email=record.email or "",
            phone=record.phone or "",
            username=record.username or "",
            address=AddressDraft(street=address.street or "", city=address.city or ""),
            company=CompanyDraft(name=company.name or ""),
            website=record.website or "",
        )

    def with_field(self, path: str, value: str) -> Draft:
        """Return a new draft with one field replaced.

        ``path`` is a dotted path from ``FIELD_PATHS`` or a form alias from
        ``FIELD_ALIASES``.

        Raises:
            KeyError: If the path names no draft field.
        """
        path = FIELD_ALIASES.get(path, path)
        if path not in FIELD_PATHS:
            raise KeyError(path)

        value = str(value)
        head, _, leaf = path.partition(".")
        if not leaf:
            return self.model_copy(update={head: value})

        nested = getattr(self, head)
        return self.model_copy(update={head: nested.model_copy(update={leaf: value})})

    def to_payload(self) -> dict[str, Any]:
        """Full form shape as a JSON-ready dict (the request body)."""
        return self.model_dump(mode="json")


__all__ = [
    "Address",
    "Company",
    "Record",
    "Draft",
    "AddressDraft",
    "CompanyDraft",
    "FIELD_PATHS",
    "FIELD_ALIASES",
]
