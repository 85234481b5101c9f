"""
FFmpeg Video Encoder - Imperative Shell

Encodes rendered slideshow frames via an FFmpeg subprocess.
Pure side-effects module - no compositing logic, just I/O operations.

This module coordinates:
- Input: Frame iterator (uint8 RGB numpy arrays)
- Process: FFmpeg subprocess reading raw rgb24 frames from stdin
- Output: MP4 (H.264) or WebM (VP9) video file, no audio track
"""

import subprocess
import threading
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np  # type: ignore


# Codec settings per container: (codec, extra args)
CODECS: Dict[str, Tuple[str, List[str]]] = {
    'mp4': ('libx264', ['-movflags', '+faststart']),
    'webm': ('libvpx-vp9', ['-b:v', '0', '-row-mt', '1']),
}

# Constant Rate Factor per quality preset (lower = better). VP9's scale is
# wider than H.264's, so each container has its own table.
QUALITY_CRF: Dict[str, Dict[str, int]] = {
    'mp4': {'low': 28, 'medium': 23, 'high': 20, 'very_high': 17},
    'webm': {'low': 40, 'medium': 34, 'high': 31, 'very_high': 24},
}


def crf_for_quality(output_format: str, quality: str) -> int:
    """Look up the CRF for a container and quality preset

    Raises:
        ValueError: If format or quality is unknown

    Examples:
        >>> crf_for_quality('mp4', 'high')
        20
    """
    if output_format not in QUALITY_CRF:
        raise ValueError(f"Unsupported output format {output_format!r}, expected one of {sorted(CODECS)}")
    table = QUALITY_CRF[output_format]
    if quality not in table:
        raise ValueError(f"Unknown quality {quality!r}, expected one of {list(table)}")
    return table[quality]


class FFmpegEncoder:
    """FFmpeg encoder for silent slideshow video

    Manages the FFmpeg subprocess lifecycle. Use as a context manager, or
    call start() / write_frame() / finish() yourself.

    Side effects:
    - Spawns FFmpeg subprocess
    - Writes raw frames to its stdin pipe
    - Creates the output video file
    """

    def __init__(
        self,
        output_path: str,
        width: int,
        height: int,
        fps: int,
        output_format: str = 'mp4',
        quality: str = 'high',
        preset: str = 'medium',
        pix_fmt: str = 'yuv420p',
        verbose: bool = True
    ):
        """
        Args:
            output_path: Path for the output file
            width, height: Frame size in pixels
            fps: Frames per second
            output_format: 'mp4' (H.264) or 'webm' (VP9)
            quality: low, medium, high or very_high
            preset: x264 speed preset (ignored for webm)
            pix_fmt: Output pixel format (yuv420p for player compatibility)
            verbose: Print encoding progress
        """
        self.output_path = str(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.output_format = output_format
        self.quality = quality
        self.crf = crf_for_quality(output_format, quality)
        self.preset = preset
        self.pix_fmt = pix_fmt
        self.verbose = verbose

        self.process: Optional[subprocess.Popen] = None
        self.frames_written = 0
        self._stderr_chunks: List[bytes] = []
        self._stderr_thread: Optional[threading.Thread] = None

    def build_command(self) -> List[str]:
        """FFmpeg argument list for this configuration"""
        codec, extra = CODECS[self.output_format]
        cmd = [
            'ffmpeg',
            '-y',
            '-hide_banner',
            '-loglevel', 'error',
            '-nostats',
            '-f', 'rawvideo',
            '-pix_fmt', 'rgb24',
            '-s', f'{self.width}x{self.height}',
            '-r', str(self.fps),
            '-i', '-',
            '-an',
            '-c:v', codec,
            '-crf', str(self.crf),
        ]
        if self.output_format == 'mp4':
            cmd.extend(['-preset', self.preset])
        cmd.extend(['-pix_fmt', self.pix_fmt])
        cmd.extend(extra)
        cmd.append(self.output_path)
        return cmd

    def start(self) -> None:
        """Start the FFmpeg subprocess

        Raises:
            RuntimeError: If already started or FFmpeg cannot be launched
        """
        if self.process is not None:
            raise RuntimeError("Encoder already started")

        cmd = self.build_command()

        if self.verbose:
            print(f"\n{'='*60}")
            print("Starting FFmpeg encoder...")
            print(f"  Output: {self.output_path}")
            print(f"  Resolution: {self.width}x{self.height} @ {self.fps}fps")
            print(f"  Codec: {cmd[cmd.index('-c:v') + 1]} (quality={self.quality}, crf={self.crf})")
            print(f"{'='*60}\n")

        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            raise RuntimeError(
                "FFmpeg not found. Please install FFmpeg:\n"
                "  macOS: brew install ffmpeg\n"
                "  Linux: apt-get install ffmpeg\n"
                "  Windows: Download from https://ffmpeg.org/"
            )
        except OSError as e:
            raise RuntimeError(f"Failed to start FFmpeg: {e}")

        # FFmpeg stops reading stdin once its stderr pipe is full
        self._stderr_chunks = []
        self._stderr_thread = threading.Thread(
            target=self._drain_stderr,
            args=(self.process.stderr,),
            daemon=True
        )
        self._stderr_thread.start()

    def _drain_stderr(self, stream) -> None:
        for chunk in iter(lambda: stream.read(4096), b''):
            self._stderr_chunks.append(chunk)

    def _collect_stderr(self) -> str:
        """Wait for the drain thread and return everything FFmpeg logged"""
        if self._stderr_thread is not None:
            self._stderr_thread.join()
            self._stderr_thread = None
        return b''.join(self._stderr_chunks).decode('utf-8', errors='replace')

    def write_frame(self, frame: np.ndarray) -> None:
        """Pipe one frame to FFmpeg

        Args:
            frame: RGB array (height, width, 3) with dtype uint8

        Raises:
            RuntimeError: If the encoder is not running or FFmpeg died
            ValueError: If the frame has the wrong shape or dtype
        """
        if self.process is None:
            raise RuntimeError("Encoder not started. Call start() first.")

        if frame.shape != (self.height, self.width, 3):
            raise ValueError(
                f"Frame shape mismatch: expected ({self.height}, {self.width}, 3), "
                f"got {frame.shape}"
            )
        if frame.dtype != np.uint8:
            raise ValueError(f"Frame dtype must be uint8, got {frame.dtype}")

        try:
            self.process.stdin.write(np.ascontiguousarray(frame).tobytes())
        except BrokenPipeError:
            self.process.wait()
            stderr = self._collect_stderr()
            raise RuntimeError(f"FFmpeg process failed:\n{stderr}")

        self.frames_written += 1
        if self.verbose and self.frames_written % 60 == 0:
            print(f"  Encoded {self.frames_written} frames ({self.frames_written / self.fps:.1f}s)...",
                  end='\r', flush=True)

    def finish(self) -> Tuple[bool, str]:
        """Close the pipe and wait for FFmpeg

        Returns:
            (success, stderr_output)
        """
        if self.process is None:
            raise RuntimeError("Encoder not started")

        try:
            self.process.stdin.close()
            returncode = self.process.wait()
            stderr = self._collect_stderr()

            if self.verbose:
                print()
                if returncode == 0:
                    print(f"✓ Encoded {self.frames_written} frames")
                    print(f"  Output: {self.output_path}")
                else:
                    print(f"✗ FFmpeg exited with code {returncode}")

            return (returncode == 0, stderr)
        finally:
            self.process = None

    def abort(self) -> None:
        """Kill FFmpeg without finalizing the output (used on cancellation)"""
        if self.process is None:
            return
        self.process.kill()
        self.process.wait()
        self._collect_stderr()
        self.process = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.process is None:
            return False
        if exc_type is not None:
            self.abort()
            return False

        success, stderr = self.finish()
        if not success:
            raise RuntimeError(f"FFmpeg encoding failed:\n{stderr}")
        return False


def encode_frames_to_video(
    frames: Iterable[np.ndarray],
    output_path: str,
    width: int,
    height: int,
    fps: int,
    output_format: str = 'mp4',
    quality: str = 'high',
    verbose: bool = True
) -> int:
    """Encode a frame iterator to a video file

    Convenience wrapper for simple encoding workflows.

    Returns:
        Number of frames written

    Raises:
        RuntimeError: If FFmpeg is missing or fails
    """
    with FFmpegEncoder(
        output_path=output_path,
        width=width,
        height=height,
        fps=fps,
        output_format=output_format,
        quality=quality,
        verbose=verbose
    ) as encoder:
        for frame in frames:
            encoder.write_frame(frame)
        return encoder.frames_written
