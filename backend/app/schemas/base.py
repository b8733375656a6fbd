"""Base schema classes with camelCase alias generation.

Python code stays snake_case; API JSON (upload response, metadata, listings)
is camelCase, e.g. original_filename -> originalFilename.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Envelope schemas. Accepts either naming, outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class CamelORMModel(CamelModel):
    """File record schemas; can also be read straight from ORM attributes."""
    model_config = {
        **CamelModel.model_config,
        "from_attributes": True,
    }
