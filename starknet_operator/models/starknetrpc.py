"""StarknetRPC Custom Resource Definition models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from starknet_operator.utils.validators import validate_storage_size

GROUP = "pathfinder.runelabs.xyz"
VERSION = "v1alpha1"
PLURAL = "starknetrpcs"
KIND = "StarknetRPC"
API_VERSION = f"{GROUP}/{VERSION}"


class CRDModel(BaseModel):
    """Base for models mirroring camelCase CRD fields."""

    model_config = ConfigDict(populate_by_name=True)


class StorageTemplate(CRDModel):
    """Size and class of a persistent volume claim."""

    size: str = Field(description="Storage size (e.g. 500Gi)")
    storage_class: Optional[str] = Field(
        default=None,
        alias="storageClass",
        description="Storage class (cluster default if unset)",
    )

    @field_validator("size", mode="before")
    @classmethod
    def validate_size(cls, v: Any) -> str:
        """Validate the size is a Kubernetes storage quantity."""
        v = str(v)
        if not validate_storage_size(v):
            raise ValueError(f"size must be a storage quantity, got {v!r}")
        return v

    @field_validator("storage_class")
    @classmethod
    def empty_class_is_default(cls, v: Optional[str]) -> Optional[str]:
        """An empty class means the cluster default, not "no class"."""
        return v or None


class ArchiveSnapshot(CRDModel):
    """
    Archive snapshot restored into the data volume before the node starts.

    The scratch storage only lives until the restore has completed.
    """

    enable: bool = Field(default=True, description="Run the archive restore")
    file_name: str = Field(alias="fileName", description="Snapshot file to restore")
    checksum: str = Field(description="Checksum of the snapshot file")
    rsync_config: Optional[str] = Field(
        default=None,
        alias="rsyncConfig",
        description="Download configuration (snapshot service default if unset)",
    )
    restore_image: Optional[str] = Field(
        default=None, alias="restoreImage", description="Image running the restore"
    )
    storage: StorageTemplate = Field(description="Scratch storage for the download")


class SecretKeySelector(CRDModel):
    """Reference to a key of a Secret in the resource namespace."""

    name: str = Field(description="Secret name")
    key: str = Field(description="Key within the secret")
    optional: Optional[bool] = Field(default=None, description="Allow a missing key")


class ResourceRequirements(CRDModel):
    """Compute resources of the node container."""

    limits: dict[str, str] = Field(default_factory=dict)
    requests: dict[str, str] = Field(default_factory=dict)

    @field_validator("limits", "requests", mode="before")
    @classmethod
    def stringify_quantities(cls, v: Any) -> dict[str, str]:
        """Quantities may be written as YAML numbers."""
        return {key: str(value) for key, value in (v or {}).items()}


class StarknetRPCSpec(CRDModel):
    """
    StarknetRPC Custom Resource Specification.

    Defines the desired state of a Pathfinder RPC node.
    """

    network: str = Field(min_length=1, description="Network the node connects to")
    restore_archive: ArchiveSnapshot = Field(
        alias="restoreArchive", description="Archive snapshot restore information"
    )
    resources: ResourceRequirements = Field(
        default_factory=ResourceRequirements, description="Node compute resources"
    )
    image: Optional[str] = Field(default=None, description="Node image override")
    storage: StorageTemplate = Field(description="Main data storage")
    layer1_rpc_secret: SecretKeySelector = Field(
        alias="layer1RpcSecret", description="Secret holding the layer 1 RPC URL"
    )
    tolerations: list[dict[str, Any]] = Field(
        default_factory=list, description="Node pod tolerations"
    )


class StarknetRPCStatus(CRDModel):
    """
    StarknetRPC Custom Resource Status.

    Holds one condition record per type ("Restore", "Available").
    """

    conditions: list[dict[str, Any]] = Field(
        default_factory=list, description="Status conditions"
    )


class ObjectMeta(CRDModel):
    """The metadata fields the operator relies on."""

    name: str
    namespace: str
    uid: str = ""
    resource_version: Optional[str] = Field(default=None, alias="resourceVersion")
    generation: Optional[int] = None


class StarknetRPC(CRDModel):
    """A StarknetRPC object as read from the cluster."""

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str = KIND
    metadata: ObjectMeta
    spec: StarknetRPCSpec
    status: StarknetRPCStatus = Field(default_factory=StarknetRPCStatus)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "StarknetRPC":
        """Parse a raw custom object body."""
        return cls.model_validate(
            {
                "apiVersion": body.get("apiVersion", API_VERSION),
                "kind": body.get("kind", KIND),
                "metadata": body.get("metadata") or {},
                "spec": body.get("spec") or {},
                "status": body.get("status") or {},
            }
        )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def status_body(self) -> dict[str, Any]:
        """Body for a replace call on the status subresource."""
        metadata: dict[str, Any] = {
            "name": self.metadata.name,
            "namespace": self.metadata.namespace,
        }
        if self.metadata.resource_version is not None:
            metadata["resourceVersion"] = self.metadata.resource_version
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": metadata,
            "status": {"conditions": list(self.status.conditions)},
        }
