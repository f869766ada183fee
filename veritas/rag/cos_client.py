import ibm_boto3
from ibm_botocore.client import Config

from veritas.config import Settings
from veritas.rag.interfaces import StorageService


class COSClient(StorageService):
    def __init__(self, settings: Settings):
        self.settings = settings
        if not settings.cos_endpoint or not settings.cos_bucket:
            raise ValueError(
                "Missing COS configuration. Please set COS_ENDPOINT and COS_BUCKET."
            )
        if not settings.cos_hmac_access_key_id or not settings.cos_hmac_secret_access_key:
            raise ValueError(
                "Signed URLs require HMAC credentials. Please set COS_HMAC_ACCESS_KEY_ID and COS_HMAC_SECRET_ACCESS_KEY."
            )

        # Normalize endpoint: strip quotes, remove trailing slash, ensure https
        endpoint = settings.cos_endpoint.strip().strip('"').strip("'").rstrip('/')
        if not endpoint.startswith(('http://', 'https://')):
            endpoint = f"https://{endpoint}"
        elif endpoint.startswith('http://'):
            endpoint = endpoint.replace('http://', 'https://', 1)

        try:
            self.client = ibm_boto3.client(
                "s3",
                aws_access_key_id=settings.cos_hmac_access_key_id,
                aws_secret_access_key=settings.cos_hmac_secret_access_key,
                config=Config(signature_version="s3v4"),
                endpoint_url=endpoint,
            )
        except Exception as e:
            raise RuntimeError(
                f"Failed to initialize COS client with HMAC authentication: {e}\n"
                f"Endpoint used: {endpoint}"
            ) from e

    def sign(self, file_path: str, ttl_seconds: int = 3600) -> str:
        key = file_path.lstrip("/")
        if key.startswith("s3://"):
            # s3://bucket/key
            key = key.split("s3://", 1)[1].split("/", 1)[1]
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.settings.cos_bucket, "Key": key},
            ExpiresIn=ttl_seconds,
        )
