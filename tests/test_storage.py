import pytest
from botocore.exceptions import ClientError

from utils.storage import S3Storage, StorageError


class RecordingS3:
    def __init__(self, fail=False):
        self.fail = fail
        self.objects = {}
        self.signed = []

    def put_object(self, Bucket, Key, Body, **extra):
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.objects[(Bucket, Key)] = (Body, extra)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.signed.append((operation, Params, ExpiresIn))
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?expires={ExpiresIn}"


@pytest.mark.unit
class TestS3Storage:
    def test_requires_bucket(self):
        with pytest.raises(ValueError):
            S3Storage("", client=RecordingS3())

    def test_resume_path_and_url(self):
        s3 = RecordingS3()
        storage = S3Storage("prep-bucket", url_expiry_seconds=600, client=s3)

        url = storage.upload_resume("user-1", "resume.pdf", b"%PDF")

        assert s3.objects[("prep-bucket", "resumes/user-1/resume.pdf")] == (b"%PDF", {"ContentType": "application/pdf"})
        assert url == "https://prep-bucket.s3.amazonaws.com/resumes/user-1/resume.pdf?expires=600"
        assert s3.signed[0][0] == "get_object"

    def test_cover_letter_path(self):
        s3 = RecordingS3()
        S3Storage("prep-bucket", client=s3).upload_cover_letter("user-1", "job-9", "letter.docx", b"doc")
        assert ("prep-bucket", "coverLetters/user-1/job-9/letter.docx") in s3.objects

    def test_upload_failure_is_wrapped(self):
        with pytest.raises(StorageError):
            S3Storage("prep-bucket", client=RecordingS3(fail=True)).upload_resume("user-1", "r.pdf", b"x")
