"""Download credentials binding a user to one archived file.

A credential is a signed JWT with the user id as subject and the file id
in the ``file_id`` claim. It is not single use: a captured token can be
replayed until it expires.
"""

from dataclasses import dataclass

from file_archive.core.result import Result, copy_failure
from file_archive.core.security import JWT_CLAIM_SUBJECT, TokenSigner

JWT_FILE_ID = "file_id"

DOWNLOAD_URL = "/api/FileArchive/DownloadFile"


@dataclass(frozen=True)
class UserIdAndFileId:
    user_id: int
    file_id: int


class DownloadTokenService:
    """Mints and reads download credentials."""

    def __init__(self, signer: TokenSigner, expire_minutes: int = 60):
        if expire_minutes <= 0:
            raise ValueError("expire_minutes is 0 or less")
        self._signer = signer
        self.expire_minutes = expire_minutes

    def build_token_for_file_download(self, user_id: str, file_id: int) -> Result[str]:
        return self._signer.generate_token(
            user_id,
            {JWT_FILE_ID: str(file_id)},
            expire_minutes=self.expire_minutes,
        )

    def read_user_id_and_file_id(self, token: str) -> Result[UserIdAndFileId]:
        """Validate the credential and return the ids it carries.

        Claims are only ever produced by ``build_token_for_file_download``,
        so a non-numeric value raises ``ValueError`` instead of failing softly.
        """
        claims_result = self._signer.validate_token(token)
        if not claims_result.is_success:
            return copy_failure(claims_result)

        claims = claims_result.data
        if JWT_FILE_ID not in claims:
            return Result.failure_bad_request("read_user_id_and_file_id: The file id is missing in the token")

        return Result.success(UserIdAndFileId(
            user_id=int(claims[JWT_CLAIM_SUBJECT]),
            file_id=int(claims[JWT_FILE_ID]),
        ))

    def download_url(self, token: str) -> str:
        return f"{DOWNLOAD_URL}?token={token}"
