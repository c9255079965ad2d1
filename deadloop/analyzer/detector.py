"""Dead function detection for single sources, files and whole projects."""
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from .graph_builder import build_graph, unit_id, unused_clusters
from .parser import LanguageParser
from .reference_tracker import ReferenceTracker
from .resolver import ClusterResolver

logger = logging.getLogger(__name__)

MESSAGE = "This function `{name}` is probably unused"

# Vendored, generated and tooling directories never worth scanning
EXCLUDED_DIRS = {
    'node_modules', 'bower_components', 'jspm_packages',
    'dist', 'build', 'out', 'coverage', '.nyc_output',
    '.next', '.nuxt', '.svelte-kit', '.turbo', '.cache',
    'vendor', 'third_party',
    '.git', '.hg', '.svn',
    '.venv', 'venv', '__pycache__',
}

LANGUAGE_FAMILIES = ('javascript', 'typescript')


@dataclass
class Finding:
    """A function that is probably unused."""
    name: str
    kind: str  # tree-sitter node type of the function
    file_path: str
    line: int
    column: int
    message: str
    cluster: List[str] = field(default_factory=list)  # dead functions referencing each other

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class FileReport:
    """Analysis result for one file."""
    file_path: str
    language: str
    functions: int = 0
    findings: List[Finding] = field(default_factory=list)


class DeadFunctionDetector:
    """Run one liveness query per named function and collect the dead ones."""

    def __init__(self, exhausted_is_unused: bool = True, excluded_dirs: Optional[Iterable[str]] = None):
        """Initialize detector.

        Args:
            exhausted_is_unused: Fallback verdict when the cluster search runs out of steps
            excluded_dirs: Extra directory names to skip in project scans
        """
        self.exhausted_is_unused = exhausted_is_unused
        self.excluded_dirs: Set[str] = EXCLUDED_DIRS | set(excluded_dirs or ())
        self._parsers: Dict[str, LanguageParser] = {}

    def _parser(self, language: str) -> LanguageParser:
        parser = self._parsers.get(language)
        if parser is None:
            parser = self._parsers[language] = LanguageParser(language)
        return parser

    def analyze_source(self, source: bytes | str, language: str = 'tsx', file_path: str = "<source>") -> FileReport:
        """Find probably unused functions in in-memory source.

        Args:
            source: Source text
            language: 'javascript', 'typescript' or 'tsx'
            file_path: Name to report findings under

        Returns:
            FileReport with findings in document order

        Raises:
            ValueError: If language is not supported
        """
        tree = self._parser(language).parse_source(source)
        tracker = ReferenceTracker(tree, file_path)
        resolver = ClusterResolver(tracker, exhausted_is_unused=self.exhausted_is_unused)

        dead = [unit for unit in tracker.units if resolver.is_unused(unit)]
        report = FileReport(file_path=file_path, language=language, functions=len(tracker.units))
        if not dead:
            return report

        graph = build_graph(tracker)
        cluster_of: Dict[str, List[str]] = {}
        for cluster in unused_clusters(graph, [unit_id(unit) for unit in dead]):
            names = [graph.nodes[node_id]['name'] for node_id in cluster]
            for node_id in cluster:
                cluster_of[node_id] = names

        for unit in dead:
            report.findings.append(Finding(
                name=unit.name,
                kind=unit.kind,
                file_path=file_path,
                line=unit.line,
                column=unit.column,
                message=MESSAGE.format(name=unit.name),
                cluster=cluster_of.get(unit_id(unit), [unit.name]),
            ))
        return report

    def analyze_file(self, file_path: str | Path) -> Optional[FileReport]:
        """Analyze one file, picking the grammar from its extension.

        Args:
            file_path: Path to a JavaScript or TypeScript file

        Returns:
            FileReport, or None if the file type is unsupported or unreadable
        """
        file_path = Path(file_path)
        language = LanguageParser.SUPPORTED_LANGUAGES.get(file_path.suffix.lower())
        if language is None:
            logger.debug("Skipping unsupported file %s", file_path)
            return None

        try:
            source = file_path.read_bytes()
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", file_path, e)
            return None

        logger.debug("Analyzing %s as %s", file_path, language)
        return self.analyze_source(source, language, str(file_path))

    def discover_files(self, root: str | Path, languages: Iterable[str] = LANGUAGE_FAMILIES) -> List[Path]:
        """List source files under root for the given language families, sorted.

        Args:
            root: Directory (or single file) to scan
            languages: Families to include ('javascript', 'typescript')

        Returns:
            Sorted list of matching file paths
        """
        root = Path(root)
        families = set(languages)
        extensions = {
            extension for extension, language in LanguageParser.SUPPORTED_LANGUAGES.items()
            if LanguageParser.family_of(language) in families
        }

        if root.is_file():
            return [root] if root.suffix.lower() in extensions else []

        files = []
        for file_path in root.rglob('*'):
            if file_path.suffix.lower() not in extensions or not file_path.is_file():
                continue
            relative_parts = file_path.relative_to(root).parts[:-1]
            if any(part in self.excluded_dirs for part in relative_parts):
                continue
            files.append(file_path)
        return sorted(files)

    def analyze_project(self, root: str | Path, languages: Iterable[str] = LANGUAGE_FAMILIES) -> List[FileReport]:
        """Analyze every supported file under root.

        Args:
            root: Project directory (or single file)
            languages: Families to include ('javascript', 'typescript')

        Returns:
            One FileReport per analyzed file, in path order
        """
        reports = []
        for file_path in self.discover_files(root, languages):
            report = self.analyze_file(file_path)
            if report is not None:
                reports.append(report)
        logger.info("Analyzed %d files under %s", len(reports), root)
        return reports
