"""Content classification for file previews."""
from typing import Optional

from docshare.models.schemas import RenderStrategy

GENERIC_CONTENT_TYPE = "application/octet-stream"

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "bmp", "webp", "svg"}
OFFICE_EXTENSIONS = {"doc", "docx", "xlsx"}
OFFICE_TYPES = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)
TEXT_TYPES = {"application/json", "application/xml"}
TEXT_EXTENSIONS = {"txt", "json", "xml", "md", "html", "css", "js", "py", "java", "cpp", "c", "h"}
AUDIO_EXTENSIONS = {"mp3", "wav", "ogg", "m4a"}
VIDEO_EXTENSIONS = {"mp4", "webm", "ogg", "avi", "mov"}


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lower-case MIME type with parameters (charset, boundary) dropped."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_generic(content_type: Optional[str]) -> bool:
    ct = normalize_content_type(content_type)
    return ct in ("", GENERIC_CONTENT_TYPE)


def file_extension(filename: Optional[str]) -> str:
    """Extension after the last dot, lower-cased; '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].strip().lower()


def classify(content_type: Optional[str], filename: Optional[str]) -> RenderStrategy:
    """
    Pick the renderer for a piece of content.

    Tiers are checked in a fixed order and the first match wins; at each tier
    either the content type or the extension may match. This is why a `.csv`
    served as `text/plain` lands on CSV: CSV is tested before Text.
    """
    ct = normalize_content_type(content_type)
    ext = file_extension(filename)

    if ct.startswith("image/") or ext in IMAGE_EXTENSIONS:
        return RenderStrategy.IMAGE
    if ct == "application/pdf" or ext == "pdf":
        return RenderStrategy.PDF
    if any(t in ct for t in OFFICE_TYPES) or ext in OFFICE_EXTENSIONS:
        return RenderStrategy.OFFICE
    if ext == "csv" or "csv" in ct:
        return RenderStrategy.CSV
    if ct.startswith("text/") or ct in TEXT_TYPES or ext in TEXT_EXTENSIONS:
        return RenderStrategy.TEXT
    if ct.startswith("audio/") or ext in AUDIO_EXTENSIONS:
        return RenderStrategy.AUDIO
    if ct.startswith("video/") or ext in VIDEO_EXTENSIONS:
        return RenderStrategy.VIDEO
    return RenderStrategy.UNSUPPORTED


def needs_content(strategy: RenderStrategy) -> bool:
    """Strategies that inspect the bytes themselves rather than embedding a URL."""
    return strategy in (RenderStrategy.TEXT, RenderStrategy.CSV)


def file_icon(file_type: Optional[str]) -> str:
    """Bootstrap icon class for a file type in list views."""
    t = (file_type or "").lower()
    if "image" in t:
        return "bi-file-earmark-image"
    if "pdf" in t:
        return "bi-file-earmark-pdf"
    if "word" in t or "document" in t:
        return "bi-file-earmark-word"
    if "excel" in t or "spreadsheet" in t:
        return "bi-file-earmark-excel"
    if "powerpoint" in t or "presentation" in t:
        return "bi-file-earmark-ppt"
    if "video" in t:
        return "bi-file-earmark-play"
    if "audio" in t:
        return "bi-file-earmark-music"
    if "text" in t:
        return "bi-file-earmark-text"
    if "zip" in t or "archive" in t:
        return "bi-file-earmark-zip"
    return "bi-file-earmark"
