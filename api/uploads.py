"""Save multipart files to the temp upload folder for the media store."""
from __future__ import annotations

import os
import uuid

from flask import current_app, request
from werkzeug.utils import secure_filename


def save_upload(field: str) -> str | None:
    """
    Persist request.files[field] under UPLOAD_FOLDER and return its path.
    Returns None when the field is absent or has no filename.
    """
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        return None
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    name = secure_filename(storage.filename) or "upload"
    path = os.path.join(folder, f"{uuid.uuid4().hex}-{name}")
    storage.save(path)
    return path


def discard_upload(*paths: str | None) -> None:
    """Remove temp files the media store did not consume."""
    for path in paths:
        if path and os.path.exists(path):
            os.remove(path)
