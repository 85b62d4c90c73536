"""
Hash Engine
===========

Content digests for duplicate detection when two files compete for the
same destination name.
"""

from pathlib import Path
import hashlib

from funnelsort.utils.logging_config import get_logger
from funnelsort.utils.exceptions import DeduplicationError, ErrorCode

logger = get_logger(__name__)


class FullHasher:
    """Computes a digest over the full file contents.

    Uses buffered reading for memory efficiency with large files.
    """

    BUFFER_SIZE = 65536  # 64KB buffer

    def __init__(self, algorithm: str = "md5"):
        """Initialize hasher.

        Args:
            algorithm: Any ``hashlib`` algorithm name. MD5 (128-bit) is
                enough to tell byte-identical files apart.
        """
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self.algorithm = algorithm

    def compute(self, file_path: Path) -> str:
        """Compute the hex digest of a file.

        Args:
            file_path: Path to the file.

        Returns:
            Hexadecimal hash string.

        Raises:
            DeduplicationError: If file cannot be read.
        """
        hasher = hashlib.new(self.algorithm)

        try:
            with open(file_path, 'rb') as f:
                while True:
                    data = f.read(self.BUFFER_SIZE)
                    if not data:
                        break
                    hasher.update(data)

            digest = hasher.hexdigest()
            logger.debug(f"{self.algorithm} of {Path(file_path).name}: {digest}")
            return digest

        except OSError as e:
            raise DeduplicationError(
                f"Cannot read file: {e}",
                file_path=str(file_path),
                hash_type=self.algorithm,
                error_code=ErrorCode.HASH_COMPUTATION_FAILED,
                cause=e,
            )

