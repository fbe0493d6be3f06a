"""Model provisioning from the distribution bucket.

Turns a model name into a ready ModelSession:

1. Resolve the model file: reuse MODELS_DIR/<name>.onnx or download
   <name>/<version>/model.onnx from the MinIO bucket
2. Build an ONNX Runtime session with the configured thread count
3. Record the declared input shape (height, width, channels)

Downloads honor DownloadConditions: with require_wifi set, nothing is
fetched unless the host reports an unmetered (Wi-Fi class) link. There is
no retry; any failure surfaces as ProvisioningError.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from minio import Minio
from minio.error import S3Error

from garment_classifier.config import get_distribution_config
from garment_classifier.exceptions import ProvisioningError
from garment_classifier.model.session import ModelSession, SessionConfig, load_session
from garment_classifier.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Download Policy
# =============================================================================


class DownloadType(str, Enum):
    """When to go to the bucket for a model file."""

    LOCAL_MODEL = "local_model"
    """Reuse the local file if present, download otherwise."""

    LATEST_MODEL = "latest_model"
    """Always download, overwriting any local file."""


@dataclass(frozen=True)
class DownloadConditions:
    """Network conditions a download must satisfy.

    Attributes:
        require_wifi: Only download over an unmetered (Wi-Fi class) link
    """

    require_wifi: bool = True


@dataclass(frozen=True)
class ModelRef:
    """A model as stored in the bucket."""

    name: str
    version: int = 1


# =============================================================================
# Downloader
# =============================================================================


class ModelDownloader:
    """Fetches model files from a MinIO bucket into a local directory.

    Bucket layout:
        {bucket}/{model_name}/{version}/model.onnx

    Local layout:
        {models_dir}/{model_name}.onnx

    Attributes:
        client: MinIO client
        bucket: Bucket holding the models
        models_dir: Local directory for downloaded files
    """

    def __init__(
        self,
        client: Minio,
        bucket: str,
        models_dir: Path,
        network_unmetered: Callable[[], bool] | bool = True,
    ) -> None:
        """Initialize ModelDownloader.

        Args:
            client: MinIO client instance
            bucket: Bucket name
            models_dir: Directory downloaded models are written to
            network_unmetered: Whether the current link satisfies a Wi-Fi-only
                condition, or a callable answering that at download time
        """
        self.client = client
        self.bucket = bucket
        self.models_dir = Path(models_dir)
        self._network_unmetered = network_unmetered

    @classmethod
    def from_settings(cls, settings: Settings | None = None, bucket: str | None = None) -> "ModelDownloader":
        """Create a downloader from environment settings and classifier.yaml."""
        settings = settings or get_settings()
        bucket = bucket or get_distribution_config().get("bucket", "models")

        client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        return cls(client, bucket, Path(settings.MODELS_DIR), settings.NETWORK_UNMETERED)

    @staticmethod
    def object_name(model_name: str, version: int = 1) -> str:
        return f"{model_name}/{version}/model.onnx"

    def local_path(self, model_name: str) -> Path:
        return self.models_dir / f"{model_name}.onnx"

    def is_network_unmetered(self) -> bool:
        if callable(self._network_unmetered):
            return bool(self._network_unmetered())
        return bool(self._network_unmetered)

    def get_model(
        self,
        model_name: str,
        download_type: DownloadType = DownloadType.LOCAL_MODEL,
        conditions: DownloadConditions = DownloadConditions(),
        version: int = 1,
    ) -> Path:
        """Return a local path to the model file, downloading it if needed.

        Args:
            model_name: Model identifier
            download_type: Reuse policy for an existing local file
            conditions: Network conditions required for a download
            version: Version directory in the bucket

        Returns:
            Path to the local ONNX file

        Raises:
            ProvisioningError: If the download is not allowed or fails
        """
        local_path = self.local_path(model_name)

        if download_type is DownloadType.LOCAL_MODEL and local_path.exists():
            logger.info(f"Using local copy of {model_name} at {local_path}")
            return local_path

        if conditions.require_wifi and not self.is_network_unmetered():
            raise ProvisioningError(model_name, "download requires an unmetered (Wi-Fi) network")

        object_name = self.object_name(model_name, version)
        try:
            self.models_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProvisioningError(
                model_name, f"cannot create models directory {self.models_dir}: {e}"
            ) from e

        logger.info(f"Downloading {self.bucket}/{object_name}", extra={"model_name": model_name})
        try:
            self.client.fget_object(self.bucket, object_name, str(local_path))
            size_mb = local_path.stat().st_size / (1024 * 1024)
        except S3Error as e:
            raise ProvisioningError(
                model_name, f"cannot fetch {self.bucket}/{object_name}: {e.code}"
            ) from e
        except Exception as e:
            # urllib3 connection errors and local write failures do not share a base class
            raise ProvisioningError(model_name, f"download failed: {e}") from e

        logger.info(f"  ✓ Downloaded {model_name}.onnx ({size_mb:.2f} MB)")
        return local_path


# =============================================================================
# Provisioner
# =============================================================================


class ModelProvisioner:
    """Downloads models and turns them into ModelSessions.

    Example:
        >>> provisioner = ModelProvisioner.from_config()
        >>> session = await provisioner.provision(ModelRef("color_model"))
        >>> session.input_shape
        (1, 24, 24, 3)
    """

    def __init__(
        self,
        downloader: ModelDownloader,
        session_config: SessionConfig | None = None,
        download_type: DownloadType = DownloadType.LOCAL_MODEL,
        conditions: DownloadConditions | None = None,
    ) -> None:
        self.downloader = downloader
        self.session_config = session_config or SessionConfig()
        self.download_type = download_type
        self.conditions = conditions or DownloadConditions()

    @classmethod
    def from_config(
        cls,
        settings: Settings | None = None,
        models_dir: Path | None = None,
    ) -> "ModelProvisioner":
        """Create a provisioner from classifier.yaml and environment settings.

        Args:
            settings: Environment settings (default: get_settings())
            models_dir: Override for settings.MODELS_DIR
        """
        settings = settings or get_settings()
        if models_dir is not None:
            settings = settings.model_copy(update={"MODELS_DIR": str(models_dir)})

        distribution = get_distribution_config()

        return cls(
            downloader=ModelDownloader.from_settings(settings, distribution.get("bucket")),
            session_config=SessionConfig.from_config(),
            download_type=DownloadType(distribution.get("download_type", "local_model")),
            conditions=DownloadConditions(require_wifi=distribution.get("require_wifi", True)),
        )

    def provision_sync(self, model: ModelRef) -> ModelSession:
        """Download (if needed) and load a model, blocking the caller.

        Raises:
            ProvisioningError: On download or session construction failure
        """
        t0 = time.perf_counter()

        model_path = self.downloader.get_model(
            model.name,
            self.download_type,
            self.conditions,
            model.version,
        )
        session = load_session(model.name, model_path, self.session_config)

        latency_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            f"Provisioned {model.name} in {latency_ms:.1f} ms",
            extra={"model_name": model.name, "latency_ms": round(latency_ms, 2)},
        )
        return session

    async def provision(self, model: ModelRef) -> ModelSession:
        """Provision a model without blocking the event loop."""
        return await asyncio.to_thread(self.provision_sync, model)
