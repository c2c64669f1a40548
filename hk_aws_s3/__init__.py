"""
hk-aws-s3: logical storage locations on top of S3.
"""
