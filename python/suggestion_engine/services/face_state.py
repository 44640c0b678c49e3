"""
Assignment state of the faces the current view shows.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from suggestion_engine.models.domain.face import FaceAssignment


class FaceStateStore:
    """FaceAssignment records keyed by face id, copy-on-write like SuggestionStore."""

    def __init__(self, faces: Iterable[FaceAssignment] = ()):
        self._faces: Mapping[str, FaceAssignment] = MappingProxyType({f.face_id: f for f in faces})

    def snapshot(self) -> Mapping[str, FaceAssignment]:
        return self._faces

    def get(self, face_id: str) -> Optional[FaceAssignment]:
        return self._faces.get(face_id)

    def put(self, face: FaceAssignment) -> None:
        faces = dict(self._faces)
        faces[face.face_id] = face
        self._faces = MappingProxyType(faces)

    def assign(self, face_id: str, person_id: str, person_name: Optional[str]) -> FaceAssignment:
        """Set person id and name together."""
        face = FaceAssignment(face_id=face_id, person_id=person_id, person_name=person_name)
        self.put(face)
        return face

    def clear(self, face_id: str) -> FaceAssignment:
        """Mark a face unassigned."""
        face = FaceAssignment(face_id=face_id)
        self.put(face)
        return face

    def restore(self, face_id: str, previous: Optional[FaceAssignment]) -> None:
        faces = dict(self._faces)
        if previous is None:
            faces.pop(face_id, None)
        else:
            faces[face_id] = previous
        self._faces = MappingProxyType(faces)

    def __len__(self) -> int:
        return len(self._faces)
