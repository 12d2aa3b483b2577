import boto3
import json
import os
import tempfile
from . import config


class DataUploader:
    def __init__(self):
        self.s3 = boto3.client('s3',
                  aws_access_key_id=config.aws_access_key_id,
                  aws_secret_access_key=config.aws_secret_access_key)

    def serialize_json(self, data) -> str:
        return json.dumps(data, indent=4)

    def save_json_files_locally(self, files: dict[str, object]) -> None:
        """
        Writes every {path: data} pair, or none of them.

        All payloads are serialized and written to temp files next to their
        targets before any target is replaced.
        """
        bodies = {path: self.serialize_json(data) for path, data in files.items()}

        temp_paths = {}
        try:
            for path, body in bodies.items():
                directory = os.path.dirname(path) or '.'
                os.makedirs(directory, exist_ok=True)
                fd, temp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
                with os.fdopen(fd, 'w') as f:
                    f.write(body)
                temp_paths[path] = temp_path
        except OSError:
            for temp_path in temp_paths.values():
                os.remove(temp_path)
            raise

        for path, temp_path in temp_paths.items():
            os.replace(temp_path, path)
            print(f"Saved {path}")

    def upload_json_to_s3(self, data, bucket_name: str, file_name: str) -> None:
        self.s3.put_object(
            Bucket=bucket_name,
            Key=file_name,
            Body=self.serialize_json(data),
            ContentType='application/json',
        )

    def upload_multiple_json_to_s3(self, files: dict[str, object], bucket_name: str) -> None:
        for file_name, data in files.items():
            self.upload_json_to_s3(data, bucket_name, file_name)
        print(f"Uploaded {len(files)} files to S3 bucket {bucket_name}")

    def download_from_s3(self, bucket_name: str, s3_file_path: str) -> str:
        response = self.s3.get_object(Bucket=bucket_name, Key=s3_file_path)
        body = response['Body'].read()
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        return body

    def download_json_from_s3(self, bucket_name: str, s3_file_path: str):
        return json.loads(self.download_from_s3(bucket_name, s3_file_path))


if __name__ == "__main__":
    uploader = DataUploader()
    payments = uploader.download_json_from_s3(config.aws_bucket_name, config.s3_path_cum_payments)
    print(payments[:3])
    print("end of script")
