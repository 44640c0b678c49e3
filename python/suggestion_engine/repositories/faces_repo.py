"""
Faces repository - face assignment endpoints.
"""

from suggestion_engine.repositories.base import BaseRepository
from suggestion_engine.models.domain.face import FaceAssignment
from suggestion_engine.models.requests.faces import AssignFaceRequest
from suggestion_engine.models.responses.faces import AssignFaceResponse, UnassignFaceResponse
from suggestion_engine.core.exceptions import FaceNotFoundError, NotFoundError


class FacesRepository(BaseRepository[FaceAssignment]):
    """
    Repository for face instances.
    """

    resource = "faces"
    model_class = FaceAssignment

    async def assign(self, face_id: str, person_id: str) -> AssignFaceResponse:
        """
        Assign a face to a person.

        Raises:
            NotFoundError: Face or person unknown (message from the server)
        """
        body = AssignFaceRequest(person_id=person_id).to_payload()
        payload = await self.api.post(self._path(face_id, "assign"), json=body)
        if not payload:
            return AssignFaceResponse(face_id=face_id, person_id=person_id)
        return self._to_model(payload, AssignFaceResponse)

    async def unassign(self, face_id: str) -> UnassignFaceResponse:
        """
        Remove a face from its person.

        Raises:
            FaceNotFoundError: Unknown face
        """
        try:
            payload = await self.api.delete(self._path(face_id, "person"))
        except NotFoundError:
            raise FaceNotFoundError(face_id)
        if not payload:
            return UnassignFaceResponse(face_id=face_id)
        return self._to_model(payload, UnassignFaceResponse)
