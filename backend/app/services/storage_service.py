import boto3
from botocore.exceptions import ClientError
from typing import List, Optional
import os
from datetime import datetime, timezone
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class StorageService:
    """
    Object storage (S3-compatible) for uploaded invoices and the document store folders
    (inbox / processed / failed). Falls back to the local filesystem without S3 credentials.
    """

    def __init__(self, local_storage_dir: Optional[str] = None):
        self.bucket_name = settings.storage_bucket_name

        # Require both access key and secret key to use S3
        if settings.storage_access_key_id and settings.storage_secret_access_key:
            s3_config = {
                'aws_access_key_id': settings.storage_access_key_id,
                'aws_secret_access_key': settings.storage_secret_access_key,
            }
            if settings.storage_endpoint_url:
                s3_config['endpoint_url'] = settings.storage_endpoint_url
            if settings.storage_region:
                s3_config['region_name'] = settings.storage_region

            try:
                self.s3_client = boto3.client('s3', **s3_config)
                logger.info("S3 storage initialized successfully")
            except Exception as e:
                logger.warning(f"Failed to initialize S3 client, falling back to local storage: {str(e)}")
                self.s3_client = None
        else:
            logger.info("No S3 credentials found, using local filesystem storage")
            self.s3_client = None

        self.local_storage_dir = os.path.abspath(local_storage_dir or settings.local_storage_dir)
        try:
            os.makedirs(self.local_storage_dir, exist_ok=True)
        except Exception as e:
            logger.error(f"Failed to create local storage directory: {str(e)}")
            raise

    def _local_path(self, storage_key: str) -> str:
        path = os.path.abspath(os.path.join(self.local_storage_dir, storage_key))
        if not path.startswith(self.local_storage_dir + os.sep):
            raise ValueError(f"Invalid storage key: {storage_key}")
        return path

    def upload_file(self, file_content: bytes, filename: str, folder: str = "uploads") -> str:
        """
        Store file bytes and return the storage key

        Args:
            file_content: Binary content of the file
            filename: Original filename
            folder: Key prefix ("uploads", or a document store folder)

        Returns:
            Storage key, e.g. "uploads/20250101_120000_invoice.pdf"
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        safe_name = os.path.basename(filename) or "invoice.pdf"
        storage_key = f"{folder.strip('/')}/{timestamp}_{safe_name}"

        if self.s3_client:
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=storage_key,
                    Body=file_content,
                    ContentType='application/pdf'
                )
                return storage_key
            except ClientError as e:
                raise Exception(f"Failed to upload to S3: {str(e)}")

        local_path = self._local_path(storage_key)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        with open(local_path, 'wb') as f:
            f.write(file_content)
        logger.info(f"File saved to local storage: {local_path}")
        return storage_key

    def download_file(self, storage_key: str) -> bytes:
        if self.s3_client:
            try:
                response = self.s3_client.get_object(Bucket=self.bucket_name, Key=storage_key)
                return response['Body'].read()
            except ClientError as e:
                raise Exception(f"Failed to download from S3: {str(e)}")

        local_path = self._local_path(storage_key)
        if not os.path.exists(local_path):
            raise FileNotFoundError(f"File not found: {storage_key}")
        with open(local_path, 'rb') as f:
            return f.read()

    def list_files(self, folder: str) -> List[str]:
        """List storage keys of the PDF files directly inside a folder"""
        prefix = f"{folder.strip('/')}/"

        if self.s3_client:
            keys = []
            try:
                paginator = self.s3_client.get_paginator('list_objects_v2')
                for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                    for obj in page.get('Contents', []):
                        key = obj['Key']
                        if '/' not in key[len(prefix):] and key.lower().endswith('.pdf'):
                            keys.append(key)
            except ClientError as e:
                raise Exception(f"Failed to list S3 folder {prefix}: {str(e)}")
            return sorted(keys)

        local_dir = self._local_path(prefix.rstrip('/'))
        if not os.path.isdir(local_dir):
            return []
        return sorted(
            f"{prefix}{name}" for name in os.listdir(local_dir)
            if name.lower().endswith('.pdf') and os.path.isfile(os.path.join(local_dir, name))
        )

    def move_file(self, storage_key: str, dest_folder: str) -> str:
        """Move a file into another folder, keeping its name. Returns the new key."""
        new_key = f"{dest_folder.strip('/')}/{os.path.basename(storage_key)}"

        if self.s3_client:
            try:
                self.s3_client.copy_object(
                    Bucket=self.bucket_name,
                    CopySource={'Bucket': self.bucket_name, 'Key': storage_key},
                    Key=new_key
                )
                self.s3_client.delete_object(Bucket=self.bucket_name, Key=storage_key)
            except ClientError as e:
                raise Exception(f"Failed to move {storage_key} in S3: {str(e)}")
            return new_key

        source = self._local_path(storage_key)
        if not os.path.exists(source):
            raise FileNotFoundError(f"File not found: {storage_key}")
        destination = self._local_path(new_key)
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        os.replace(source, destination)
        logger.info(f"Moved {storage_key} -> {new_key}")
        return new_key


storage_service = StorageService()
