"""DOCX package access: read the main document part and write patched copies."""
from __future__ import annotations

import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

from docx_templater.utils.errors import DocumentDecodeError, PackageIOError, PartNotFoundError
from docx_templater.utils.logger import get_logger
from docx_templater.utils.text_normalizer import repair_placeholders

LOGGER = get_logger(__name__)

DOCUMENT_XML_PATH = "word/document.xml"
DEFAULT_MEMBER_MODE = 0o755
OUTPUT_FILE_MODE = 0o644


@dataclass(slots=True)
class DocxPackage:
    """A DOCX archive on disk whose main document part can be swapped out."""

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def read_body(self) -> str:
        """Return document.xml as text with split placeholders repaired."""
        try:
            with zipfile.ZipFile(self.path) as docx_zip:
                for info in docx_zip.infolist():
                    if info.filename == DOCUMENT_XML_PATH:
                        data = docx_zip.read(info)
                        break
                else:
                    raise PartNotFoundError(f"{DOCUMENT_XML_PATH} not found in {self.path.name}")
        except (OSError, zipfile.BadZipFile) as exc:
            raise PackageIOError(f"Cannot read {self.path}: {exc}") from exc

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentDecodeError(f"{DOCUMENT_XML_PATH} is not valid UTF-8: {exc}") from exc

        LOGGER.debug("Read %d bytes of %s from %s", len(data), DOCUMENT_XML_PATH, self.path.name)
        return repair_placeholders(text)

    def write_body(self, destination: Path, body_xml: str) -> Path:
        """Write a copy of this package to ``destination`` with a new document.xml.

        Every other member is copied byte for byte. The archive is assembled in
        a temporary file next to ``destination`` and only moved into place once
        complete, so a failure never leaves a partial package behind.
        """
        destination = Path(destination)
        try:
            handle, temp_name = tempfile.mkstemp(
                prefix=f".{destination.name}.", suffix=".part", dir=destination.parent
            )
            os.close(handle)
        except OSError as exc:
            raise PackageIOError(f"Cannot create {destination}: {exc}") from exc

        temp_path = Path(temp_name)
        try:
            self._copy_members(temp_path, body_xml.encode("utf-8"))
            os.chmod(temp_path, OUTPUT_FILE_MODE)
            os.replace(temp_path, destination)
        except (OSError, zipfile.BadZipFile) as exc:
            temp_path.unlink(missing_ok=True)
            raise PackageIOError(f"Cannot write {destination}: {exc}") from exc
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        LOGGER.debug("Wrote %s", destination)
        return destination

    def _copy_members(self, target: Path, body: bytes) -> None:
        with zipfile.ZipFile(self.path) as zin, zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zout:
            zout.comment = zin.comment
            for info in zin.infolist():
                member = _clone_info(info)
                if info.filename == DOCUMENT_XML_PATH:
                    zout.writestr(member, body)
                elif info.is_dir():
                    zout.writestr(member, b"")
                else:
                    with zin.open(info) as source, zout.open(member, "w") as sink:
                        shutil.copyfileobj(source, sink)
            LOGGER.debug("Copied %d members into %s", len(zin.infolist()), target.name)


def _clone_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    """Copy name, timestamp and permission bits of a member; compression is reset."""
    member = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    member.compress_type = zipfile.ZIP_DEFLATED
    mode = info.external_attr >> 16 or DEFAULT_MEMBER_MODE
    member.external_attr = (mode << 16) | (info.external_attr & 0xFFFF)
    return member


def read_body(package_path: Path) -> str:
    return DocxPackage(Path(package_path)).read_body()


def write_body(source_path: Path, destination_path: Path, body_xml: str) -> Path:
    return DocxPackage(Path(source_path)).write_body(destination_path, body_xml)
