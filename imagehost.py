# imagehost.py
"""
Image hosting backends used when a post carries an image.

A host takes a Werkzeug FileStorage and returns an UploadedImage holding the
public URL and the id needed to delete the asset again. Two hosts exist:

 - CloudinaryHost: uploads through the Cloudinary SDK.
 - LocalFolderHost: files written to a local folder and served by the app
   under /uploads/. Used when no Cloudinary credentials are configured.
"""

import os
import uuid
import logging
from typing import NamedTuple, Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from werkzeug.utils import secure_filename

from errors import UpstreamError

logger = logging.getLogger("mini-social")


class UploadedImage(NamedTuple):
    url: str
    asset_id: str


class ImageHost:
    name = "abstract"

    def upload(self, file_storage) -> UploadedImage:
        raise NotImplementedError

    def delete(self, asset_id: str) -> None:
        raise NotImplementedError


class LocalFolderHost(ImageHost):
    name = "local"

    def __init__(self, folder: str, url_prefix: str = "/uploads"):
        self.folder = folder
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.folder, exist_ok=True)

    def upload(self, file_storage) -> UploadedImage:
        filename = secure_filename(file_storage.filename or "") or "image"
        name = f"{uuid.uuid4().hex}_{filename}"
        try:
            file_storage.save(os.path.join(self.folder, name))
        except OSError as e:
            logger.exception("Local image save error")
            raise UpstreamError("Image upload failed") from e
        return UploadedImage(url=f"{self.url_prefix}/{name}", asset_id=name)

    def delete(self, asset_id: str) -> None:
        path = os.path.join(self.folder, os.path.basename(asset_id))
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


class CloudinaryHost(ImageHost):
    """Uploads through the Cloudinary SDK into a single folder."""

    name = "cloudinary"

    def __init__(self, cloud_name, api_key, api_secret, folder="socialmedia_posts", timeout=30):
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder = folder
        self.timeout = timeout

    def upload(self, file_storage) -> UploadedImage:
        try:
            result = cloudinary.uploader.upload(
                file_storage.stream,
                folder=self.folder,
                resource_type="image",
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary upload error: %s", e)
            raise UpstreamError("Image upload failed") from e

        url = result.get("secure_url")
        public_id = result.get("public_id")
        if not url or not public_id:
            logger.error("Cloudinary reply missing secure_url/public_id: %s", result)
            raise UpstreamError("Image upload failed")
        return UploadedImage(url=url, asset_id=public_id)

    def delete(self, asset_id: str) -> None:
        try:
            cloudinary.uploader.destroy(asset_id, resource_type="image", timeout=self.timeout)
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary destroy of %s failed: %s", asset_id, e)
            raise UpstreamError("Image cleanup failed") from e


def build_image_host(upload_folder: str,
                     cloud_name: Optional[str] = None,
                     api_key: Optional[str] = None,
                     api_secret: Optional[str] = None,
                     folder: str = "socialmedia_posts",
                     timeout: int = 30) -> ImageHost:
    if cloud_name and api_key and api_secret:
        return CloudinaryHost(cloud_name, api_key, api_secret, folder=folder, timeout=timeout)
    return LocalFolderHost(upload_folder)
