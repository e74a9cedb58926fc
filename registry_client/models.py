"""Response models for the registry API.

Only the fields the client reads are modeled; anything else in a response
is ignored. The registry sends ``null`` for absent strings and lists, so a
null value falls back to the field's default.
"""

from datetime import datetime
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from registry_client.exceptions import ResponseDecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)


class RegistryModel(BaseModel):
    """Base model: unknown fields ignored, hyphenated aliases accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value


def decode(model: Type[ModelT], data: Any, status_code: int = 200) -> ModelT:
    """Validate a decoded JSON body against ``model``.

    An empty body validates as an empty object.

    Raises:
        ResponseDecodeError: The body does not match the model's shape
    """
    try:
        return model.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        raise ResponseDecodeError(
            status_code, f"unexpected {model.__name__} payload: {e.error_count()} invalid field(s)"
        ) from e


# -- modules (v1 API, offset pagination) -----------------------------------


class Module(RegistryModel):
    """A module as returned by module listings and searches."""

    id: str = ""
    owner: str = ""
    namespace: str = ""
    name: str = ""
    version: str = ""
    provider: str = ""
    description: str = ""
    source: str = ""
    published_at: Optional[datetime] = None
    downloads: int = 0
    verified: bool = False


class ModuleListMeta(RegistryModel):
    limit: int = 0
    current_offset: int = 0
    next_offset: Optional[int] = None
    prev_offset: Optional[int] = None


class ModuleList(RegistryModel):
    meta: ModuleListMeta = Field(default_factory=ModuleListMeta)
    modules: List[Module] = Field(default_factory=list)


class ModuleDetails(Module):
    """Details of one module version."""

    versions: List[str] = Field(default_factory=list)


class ModuleVersion(RegistryModel):
    version: str = ""


class ModuleVersionsEntry(RegistryModel):
    source: str = ""
    versions: List[ModuleVersion] = Field(default_factory=list)


class ModuleVersions(RegistryModel):
    modules: List[ModuleVersionsEntry] = Field(default_factory=list)


# -- v2 JSON:API resources (page-number pagination) ------------------------


class Pagination(RegistryModel):
    current_page: int = Field(default=1, alias="current-page")
    next_page: Optional[int] = Field(default=None, alias="next-page")
    prev_page: Optional[int] = Field(default=None, alias="prev-page")
    total_pages: Optional[int] = Field(default=None, alias="total-pages")
    total_count: Optional[int] = Field(default=None, alias="total-count")


class Meta(RegistryModel):
    pagination: Pagination = Field(default_factory=Pagination)


class ProviderAttributes(RegistryModel):
    alias: str = ""
    description: str = ""
    downloads: int = 0
    featured: bool = False
    full_name: str = Field(default="", alias="full-name")
    name: str = ""
    namespace: str = ""
    owner_name: str = Field(default="", alias="owner-name")
    source: str = ""
    tier: str = ""


class ProviderData(RegistryModel):
    type: str = ""
    id: str = ""
    attributes: ProviderAttributes = Field(default_factory=ProviderAttributes)


class ProviderList(RegistryModel):
    data: List[ProviderData] = Field(default_factory=list)
    meta: Meta = Field(default_factory=Meta)


class VersionAttributes(RegistryModel):
    version: str = ""
    description: str = ""
    downloads: int = 0
    published_at: Optional[datetime] = Field(default=None, alias="published-at")
    tag: str = ""


class VersionData(RegistryModel):
    type: str = ""
    id: str = ""
    attributes: VersionAttributes = Field(default_factory=VersionAttributes)


class ProviderVersionList(RegistryModel):
    data: ProviderData = Field(default_factory=ProviderData)
    included: List[VersionData] = Field(default_factory=list)


class ProviderLatestVersion(RegistryModel):
    provider: ProviderData
    version: str


class ProviderDocAttributes(RegistryModel):
    category: str = ""
    subcategory: str = ""
    slug: str = ""
    title: str = ""
    path: str = ""
    language: str = ""
    content: str = ""
    truncated: bool = False


class ProviderDoc(RegistryModel):
    type: str = ""
    id: str = ""
    attributes: ProviderDocAttributes = Field(default_factory=ProviderDocAttributes)


class ProviderDocList(RegistryModel):
    data: List[ProviderDoc] = Field(default_factory=list)
    meta: Meta = Field(default_factory=Meta)


class ProviderDocDetails(RegistryModel):
    """A single documentation page, content included."""

    data: ProviderDoc = Field(default_factory=ProviderDoc)


class PolicyAttributes(RegistryModel):
    name: str = ""
    title: str = ""
    namespace: str = ""
    full_name: str = Field(default="", alias="full-name")
    description: str = ""
    downloads: int = 0
    verified: bool = False
    source: str = ""
    # Set on policy version details
    version: str = ""
    tag: str = ""
    published_at: Optional[datetime] = Field(default=None, alias="published-at")


class Policy(RegistryModel):
    type: str = ""
    id: str = ""
    attributes: PolicyAttributes = Field(default_factory=PolicyAttributes)


class PolicyList(RegistryModel):
    data: List[Policy] = Field(default_factory=list)
    meta: Meta = Field(default_factory=Meta)


class PolicyIncludedAttributes(RegistryModel):
    name: str = ""
    title: str = ""
    description: str = ""
    full_name: str = Field(default="", alias="full-name")
    downloads: int = 0
    shasum: str = ""
    shasum_type: str = Field(default="", alias="shasum-type")


class PolicyIncluded(RegistryModel):
    """A policy, policy module or policy library bundled with policy details."""

    type: str = ""
    id: str = ""
    attributes: PolicyIncludedAttributes = Field(default_factory=PolicyIncludedAttributes)


class PolicyDetails(RegistryModel):
    data: Policy = Field(default_factory=Policy)
    included: List[PolicyIncluded] = Field(default_factory=list)
