"""s3cse - one-shot S3 transfers with client-side KMS envelope encryption."""
