"""
Source usage detector.

AVFoundation is linked for playback, capture and speech alike, so linkage
alone says little about which permissions an app needs. This module walks
the Swift and Objective-C sources under a project's scope directory, strips
comments, and sorts the API identifiers it finds into camera, microphone and
playback evidence buckets. Rules use the buckets to raise confidence when a
capture API is present and to stay quiet when only playback APIs are.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Pattern, Sequence, Tuple, Union
import logging

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Walked without a depth bound; these directories never hold app sources
SOURCE_SKIP_DIRS = frozenset({
    'Pods', 'Carthage', 'DerivedData', '.build', 'node_modules', 'build', '.git',
})

SOURCE_EXTENSIONS = frozenset({'.swift', '.m', '.mm'})

LINE_COMMENT = re.compile(r'//.*$', re.MULTILINE)
BLOCK_COMMENT = re.compile(r'/\*[\s\S]*?\*/')


def _labeled(*names: str) -> List[Tuple[str, Pattern]]:
    return [(name, re.compile(r'\b' + re.escape(name) + r'\b')) for name in names]


CAMERA_PATTERNS = _labeled(
    'AVCaptureSession',
    'AVCaptureDevice',
    'AVCaptureVideoPreviewLayer',
    'AVCapturePhotoOutput',
    'AVCaptureMovieFileOutput',
    'VNDocumentCameraViewController',
    'DataScannerViewController',
    'capturePhoto',
)

MICROPHONE_PATTERNS = _labeled(
    'AVAudioRecorder',
    'SFSpeechRecognizer',
    'SFSpeechAudioBufferRecognitionRequest',
    'AVCaptureAudioDataOutput',
)

PLAYBACK_PATTERNS = _labeled(
    'AVPlayer',
    'AVPlayerViewController',
    'AVPlayerItem',
    'AVAudioPlayer',
    'AVAudioSession',
    'AVAsset',
    'AVURLAsset',
    'AVMutableComposition',
    'AVSpeechSynthesizer',
)

AVFOUNDATION_IMPORT_PATTERNS = [
    re.compile(r'^\s*import\s+AVFoundation\b', re.MULTILINE),
    re.compile(r'#import\s*<AVFoundation/AVFoundation\.h>'),
]

# Contextual two-token rules
IMAGE_PICKER = re.compile(r'\bUIImagePickerController\b')
IMAGE_PICKER_CAMERA_SOURCES = [
    re.compile(r'\bsourceType\s*=\s*\.camera\b'),
    re.compile(r'\bsourceType\s*=\s*UIImagePickerController\.SourceType\.camera\b'),
    re.compile(r'\bUIImagePickerController\.SourceType\.camera\b'),
    re.compile(r'\bUIImagePickerControllerSourceTypeCamera\b'),
]
AUDIO_ENGINE = re.compile(r'\bAVAudioEngine\b')
INPUT_NODE = re.compile(r'\binputNode\b')
START_RECORDING = re.compile(r'\bstartRecording\b')
CAMERA_CONTEXT = re.compile(
    r'\b(AVCapture|VNDocumentCameraViewController|DataScannerViewController|UIImagePickerController|camera)\b',
    re.IGNORECASE,
)
AUDIO_CONTEXT = re.compile(r'\b(AVAudio|AVCaptureAudio|SFSpeech|microphone|audio)\b', re.IGNORECASE)

IMAGE_PICKER_CAMERA_LABEL = 'UIImagePickerController(.camera)'
AUDIO_ENGINE_INPUT_LABEL = 'AVAudioEngine.inputNode'
START_RECORDING_CAMERA_LABEL = 'startRecording (camera context)'
START_RECORDING_AUDIO_LABEL = 'startRecording (audio context)'


class SourceFile(NamedTuple):
    """A source file with comments already removed"""
    path: str
    content: str


@dataclass(frozen=True)
class SourceUsageSignals:
    """Evidence of capture and playback APIs found in project sources"""
    has_avfoundation_import: bool = False
    camera_evidence: Tuple[str, ...] = field(default_factory=tuple)
    microphone_evidence: Tuple[str, ...] = field(default_factory=tuple)
    playback_evidence: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_camera_specific_usage(self) -> bool:
        return bool(self.camera_evidence)

    @property
    def has_microphone_specific_usage(self) -> bool:
        return bool(self.microphone_evidence)

    @property
    def has_playback_usage(self) -> bool:
        return bool(self.playback_evidence)

    @property
    def has_playback_only_usage(self) -> bool:
        return (self.has_playback_usage
                and not self.has_camera_specific_usage
                and not self.has_microphone_specific_usage)

    @property
    def has_any_signal(self) -> bool:
        return self.has_avfoundation_import or self.has_playback_usage or self.has_camera_specific_usage


def strip_comments(source: str) -> str:
    """Remove ``//`` line comments, then ``/* */`` block comments"""
    return BLOCK_COMMENT.sub('', LINE_COMMENT.sub('', source))


def _read_source(path: str) -> Optional[str]:
    for encoding in ('utf-8', 'latin-1'):
        try:
            with open(path, 'r', encoding=encoding) as f:
                return f.read()
        except UnicodeDecodeError:
            continue
        except OSError as e:
            logger.debug(f"Error reading {path}: {e}")
            return None
    return None


def find_source_files(root: PathLike) -> List[str]:
    """Swift and Objective-C implementation files under ``root``, sorted"""
    root = str(root)
    if not os.path.isdir(root):
        return []

    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SOURCE_SKIP_DIRS)
        for name in sorted(filenames):
            if os.path.splitext(name)[1].lower() in SOURCE_EXTENSIONS:
                files.append(os.path.join(dirpath, name))
    return files


def read_source_files(root: PathLike) -> List[SourceFile]:
    """Comment-stripped contents of every readable source file under ``root``"""
    sources = []
    for path in find_source_files(root):
        content = _read_source(path)
        if content is not None:
            sources.append(SourceFile(path, strip_comments(content)))
    logger.debug(f"Read {len(sources)} source files under {root}")
    return sources


def _collect(content: str, patterns: Sequence[Tuple[str, Pattern]], into: List[str]) -> None:
    for label, pattern in patterns:
        if label not in into and pattern.search(content):
            into.append(label)


def _add(label: str, into: List[str]) -> None:
    if label not in into:
        into.append(label)


def detect_source_usage(sources: Iterable[SourceFile]) -> SourceUsageSignals:
    """
    Classify capture and playback API usage across comment-stripped sources.

    Args:
        sources: Files as returned by ``read_source_files``

    Returns:
        SourceUsageSignals with evidence labels in first-seen order
    """
    has_import = False
    camera: List[str] = []
    microphone: List[str] = []
    playback: List[str] = []

    for source in sources:
        content = source.content

        if not has_import:
            has_import = any(p.search(content) for p in AVFOUNDATION_IMPORT_PATTERNS)

        _collect(content, CAMERA_PATTERNS, camera)
        if IMAGE_PICKER.search(content) and any(p.search(content) for p in IMAGE_PICKER_CAMERA_SOURCES):
            _add(IMAGE_PICKER_CAMERA_LABEL, camera)

        recording = START_RECORDING.search(content) is not None
        if recording and CAMERA_CONTEXT.search(content):
            _add(START_RECORDING_CAMERA_LABEL, camera)

        _collect(content, MICROPHONE_PATTERNS, microphone)
        if AUDIO_ENGINE.search(content) and INPUT_NODE.search(content):
            _add(AUDIO_ENGINE_INPUT_LABEL, microphone)
        if recording and AUDIO_CONTEXT.search(content):
            _add(START_RECORDING_AUDIO_LABEL, microphone)

        _collect(content, PLAYBACK_PATTERNS, playback)

    return SourceUsageSignals(
        has_avfoundation_import=has_import,
        camera_evidence=tuple(camera),
        microphone_evidence=tuple(microphone),
        playback_evidence=tuple(playback),
    )


def detect_source_usage_at(root: PathLike) -> SourceUsageSignals:
    """Read and classify sources under ``root``; a missing root yields no evidence"""
    return detect_source_usage(read_source_files(root))
