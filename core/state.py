"""Pipeline state models shared across all stages.

Model payloads and HTTP bodies use camelCase keys ("visionText",
"implementationOrder"); the dataclasses use snake_case and convert at the
edges with from_dict()/to_dict().
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from core.errors import MissingPreconditionError


def normalize_requirements(requirements) -> tuple[str, ...]:
    """Strip blank entries and return the immutable RequirementSet."""
    if isinstance(requirements, str) or not requirements:
        raise MissingPreconditionError("A non-empty list of requirements is required")
    cleaned = tuple(str(r).strip() for r in requirements if str(r).strip())
    if not cleaned:
        raise MissingPreconditionError("A non-empty list of requirements is required")
    return cleaned


@dataclass(frozen=True)
class FileDescriptor:
    name: str
    description: str = ""
    purpose: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> FileDescriptor:
        return cls(
            name=str(data.get("name", "")).strip(),
            description=data.get("description", "") or "",
            purpose=data.get("purpose", "") or "",
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description, "purpose": self.purpose}


@dataclass(frozen=True)
class FolderNode:
    name: str
    description: str = ""
    purpose: str = ""
    files: tuple[FileDescriptor, ...] = ()
    subfolders: tuple[FolderNode, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> FolderNode:
        return cls(
            name=str(data.get("name", "")).strip(),
            description=data.get("description", "") or "",
            purpose=data.get("purpose", "") or "",
            files=tuple(
                FileDescriptor.from_dict(f) for f in data.get("files") or []
                if isinstance(f, dict)
            ),
            subfolders=tuple(
                FolderNode.from_dict(s) for s in data.get("subfolders") or []
                if isinstance(s, dict)
            ),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "purpose": self.purpose,
            "files": [f.to_dict() for f in self.files],
            "subfolders": [s.to_dict() for s in self.subfolders],
        }

    def iter_files(self, prefix=""):
        """Yield (relative_path, FileDescriptor) for every leaf file.

        Paths are relative to this folder, so the folder's own name is not
        part of them.
        """
        for f in self.files:
            yield (f"{prefix}{f.name}", f)
        for sub in self.subfolders:
            yield from sub.iter_files(f"{prefix}{sub.name}/")


@dataclass(frozen=True)
class SpecialistVision:
    role: str
    expertise: str
    vision_text: str
    proposed_tree: FolderNode

    @classmethod
    def from_dict(cls, data: dict) -> SpecialistVision:
        structure = data.get("projectStructure") or {}
        tree = structure.get("rootFolder") or data.get("rootFolder") or data.get("proposedTree") or {}
        return cls(
            role=data.get("role", ""),
            expertise=data.get("expertise", ""),
            vision_text=data.get("visionText", ""),
            proposed_tree=FolderNode.from_dict(tree),
        )

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "expertise": self.expertise,
            "visionText": self.vision_text,
            "projectStructure": {"rootFolder": self.proposed_tree.to_dict()},
        }


@dataclass(frozen=True)
class RoleFailure:
    role: str
    error: str


@dataclass(frozen=True)
class FileNode:
    """One dependency-graph node: a planned file and its edges."""

    name: str
    path: str
    description: str = ""
    purpose: str = ""
    type: str = ""
    dependencies: tuple[str, ...] = ()
    dependents: tuple[str, ...] = ()
    implementation_order: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> FileNode:
        try:
            order = int(data.get("implementationOrder") or 1)
        except (TypeError, ValueError):
            order = 1
        return cls(
            name=str(data.get("name", "")).strip(),
            path=str(data.get("path", "")).strip(),
            description=data.get("description", "") or "",
            purpose=data.get("purpose", "") or "",
            type=data.get("type", "") or "",
            dependencies=tuple(str(d) for d in data.get("dependencies") or []),
            dependents=tuple(str(d) for d in data.get("dependents") or []),
            implementation_order=order,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "description": self.description,
            "purpose": self.purpose,
            "type": self.type,
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
            "implementationOrder": self.implementation_order,
        }


@dataclass(frozen=True)
class IntegratedArchitecture:
    integrated_vision: str
    resolution_notes: tuple[str, ...]
    root_folder: FolderNode
    dependency_graph: tuple[FileNode, ...]
    repair_notes: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> IntegratedArchitecture:
        if not isinstance(data, dict) or not data.get("rootFolder") or not data.get("dependencyTree"):
            raise MissingPreconditionError(
                "Architecture output must include both rootFolder and dependencyTree"
            )
        files = (data.get("dependencyTree") or {}).get("files")
        if not isinstance(files, list) or not files:
            raise MissingPreconditionError("Invalid dependency tree: no files found")
        return cls(
            integrated_vision=data.get("integratedVision") or data.get("visionText") or "",
            resolution_notes=tuple(data.get("resolutionNotes") or []),
            root_folder=FolderNode.from_dict(data["rootFolder"]),
            dependency_graph=tuple(FileNode.from_dict(f) for f in files if isinstance(f, dict)),
            repair_notes=tuple(data.get("repairNotes") or []),
        )

    def to_dict(self) -> dict:
        return {
            "integratedVision": self.integrated_vision,
            "resolutionNotes": list(self.resolution_notes),
            "rootFolder": self.root_folder.to_dict(),
            "dependencyTree": {"files": [n.to_dict() for n in self.dependency_graph]},
            "repairNotes": list(self.repair_notes),
        }


@dataclass(frozen=True)
class GeneratedUnit:
    """Final artifact for one node: a file implementation or a book chapter.

    Write-once: a unit is only handed out once complete is True.
    """

    path: str
    name: str
    content: str
    language: str
    kind: str = "file"               # "file" | "chapter"
    description: str = ""
    purpose: str = ""
    dependencies: tuple[str, ...] = ()
    complete: bool = True
    possibly_incomplete: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> GeneratedUnit:
        return cls(
            path=data.get("path", ""),
            name=data.get("name", ""),
            content=data.get("content", data.get("code", "")) or "",
            language=data.get("language", "text") or "text",
            kind=data.get("kind", "file"),
            description=data.get("description", "") or "",
            purpose=data.get("purpose", "") or "",
            dependencies=tuple(data.get("dependencies") or []),
            complete=bool(data.get("complete", True)),
            possibly_incomplete=bool(data.get("possiblyIncomplete", False)),
        )

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "purpose": self.purpose,
            "dependencies": list(self.dependencies),
            "language": self.language,
            "content": self.content,
            "complete": self.complete,
            "possiblyIncomplete": self.possibly_incomplete,
        }


@dataclass
class ContinuationState:
    unit_id: str
    sections: list[str]
    accumulated_content: str = ""
    remaining_sections: list[str] = field(default_factory=list)
    rounds: int = 0


@dataclass(frozen=True)
class ChapterPlan:
    title: str
    sections: tuple[str, ...] = ()


@dataclass(frozen=True)
class BookOutline:
    title: str
    introduction: str
    chapters: tuple[ChapterPlan, ...]

    @classmethod
    def from_dict(cls, data: dict) -> BookOutline:
        chapters = []
        for ch in data.get("chapters") or []:
            if isinstance(ch, dict) and str(ch.get("title", "")).strip():
                chapters.append(ChapterPlan(
                    title=str(ch["title"]).strip(),
                    sections=tuple(str(s) for s in ch.get("sections") or [] if str(s).strip()),
                ))
        return cls(
            title=data.get("title", ""),
            introduction=data.get("introduction", ""),
            chapters=tuple(chapters),
        )


@dataclass(frozen=True)
class ImplementationBook:
    title: str
    introduction: str
    chapters: tuple[GeneratedUnit, ...]

    @property
    def complete(self) -> bool:
        return all(ch.complete for ch in self.chapters)

    @classmethod
    def from_dict(cls, data: dict) -> ImplementationBook:
        chapters = []
        for i, ch in enumerate(data.get("chapters") or [], 1):
            if not isinstance(ch, dict):
                continue
            title = ch.get("title", "")
            chapters.append(GeneratedUnit(
                path=ch.get("path") or f"chapter-{i:02d}",
                name=title,
                content=ch.get("content", "") or "",
                language="markdown",
                kind="chapter",
                description=title,
                complete=bool(ch.get("isComplete", ch.get("complete", False))),
                possibly_incomplete=bool(ch.get("possiblyIncomplete", False)),
            ))
        return cls(
            title=data.get("title", ""),
            introduction=data.get("introduction", ""),
            chapters=tuple(chapters),
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "introduction": self.introduction,
            "chapters": [
                {
                    "path": ch.path,
                    "title": ch.name,
                    "content": ch.content,
                    "isComplete": ch.complete,
                    "possiblyIncomplete": ch.possibly_incomplete,
                }
                for ch in self.chapters
            ],
            "isComplete": self.complete,
        }


@dataclass(frozen=True)
class Level1Output:
    specialists: tuple[SpecialistVision, ...]
    roles: tuple[str, ...]
    failures: tuple[RoleFailure, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> Level1Output:
        if not isinstance(data, dict):
            raise MissingPreconditionError("level1Output is required")
        return cls(
            specialists=tuple(
                SpecialistVision.from_dict(s) for s in data.get("specialists") or []
                if isinstance(s, dict)
            ),
            roles=tuple(data.get("roles") or []),
            failures=tuple(
                RoleFailure(role=f.get("role", ""), error=f.get("error", ""))
                for f in data.get("failures") or [] if isinstance(f, dict)
            ),
        )

    def to_dict(self) -> dict:
        return {
            "specialists": [s.to_dict() for s in self.specialists],
            "roles": list(self.roles),
            "failures": [{"role": f.role, "error": f.error} for f in self.failures],
        }


@dataclass(frozen=True)
class Level2Output:
    architecture: IntegratedArchitecture
    book: ImplementationBook | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Level2Output:
        if not isinstance(data, dict):
            raise MissingPreconditionError("level2Output is required")
        book = data.get("implementationBook")
        return cls(
            architecture=IntegratedArchitecture.from_dict(data),
            book=ImplementationBook.from_dict(book) if isinstance(book, dict) else None,
        )

    def to_dict(self) -> dict:
        result = self.architecture.to_dict()
        if self.book is not None:
            result["implementationBook"] = self.book.to_dict()
        return result


@dataclass(frozen=True)
class Level3Output:
    implementations: tuple[GeneratedUnit, ...]

    def to_dict(self) -> dict:
        return {"implementations": [u.to_dict() for u in self.implementations]}


@dataclass
class GenerationJob:
    id: str
    kind: str = "book"                  # "book" | "implementation"
    status: str = "initializing"        # initializing|in-progress|complete|error
    total_units: int = 0
    completed_units: int = 0
    current_unit_label: str = "Initializing"
    error: str | None = None
    result: dict | None = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def progress(self) -> float:
        if self.status == "complete":
            return 100.0
        if not self.total_units:
            return 0.0
        return self.completed_units / self.total_units * 100

    @property
    def terminal(self) -> bool:
        return self.status in ("complete", "error")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "status": self.status,
            "progress": self.progress,
            "totalUnits": self.total_units,
            "completedUnits": self.completed_units,
            "currentUnit": self.current_unit_label,
            "error": self.error,
            "isComplete": self.status == "complete",
            "result": self.result,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class PipelineState:
    """Record of one end-to-end run, advanced phase by phase."""

    requirements: tuple[str, ...]
    phase: str = "specialists"          # specialists|integration|implementation|done|failed
    level1: Level1Output | None = None
    level2: Level2Output | None = None
    level3: Level3Output | None = None
    errors: list[str] = field(default_factory=list)
