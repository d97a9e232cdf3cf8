#!/usr/bin/env python3
"""
meshbridge Converter - Main Orchestrator Module
Coordinates read -> build -> export for single files and batches

Pipeline:
    GltfReader -> Document -> RuntimeBuilder -> RuntimeMesh
    RuntimeMesh -> (mesh_ops) -> DocumentBuilder -> Document -> GltfWriter
"""

import logging
from pathlib import Path

from meshbridge import config
from meshbridge.batch import run_batch
from meshbridge.core import mesh_ops
from meshbridge.core.errors import MeshBridgeError, StructuralError
from meshbridge.exporters import DocumentBuilder, GltfWriter
from meshbridge.readers import create_reader

logger = logging.getLogger(__name__)


class MeshBridgeConverter:
    """glTF to runtime mesh converter (orchestrator/facade)

    This class coordinates the conversion process:
    1. Parse the manifest and load its payloads (GltfReader)
    2. Build one flattened runtime mesh (RuntimeBuilder)
    3. Optionally center / normalize the mesh
    4. Rebuild a single-mesh document and write it (DocumentBuilder, GltfWriter)
    """

    def __init__(self, progress_callback=None):
        """Initialize converter

        Args:
            progress_callback: Optional function to call for progress updates
                              Signature: callback(message: str) -> None
        """
        self.progress_callback = progress_callback

    def log(self, message):
        """Send progress updates to callback"""
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    def load_document(self, input_file, stats=False):
        """Parse a manifest into a Document

        Args:
            input_file: Path to the .gltf manifest
            stats: Log a statistics summary of the parsed document

        Returns:
            Document: Parsed document
        """
        reader = create_reader(input_file, self.progress_callback)
        document = reader.parse()
        if stats:
            reader.log_statistics()
        return document

    def load_model(self, input_file, stats=False):
        """Parse a manifest and build its runtime mesh

        Returns:
            RuntimeMesh: Flattened model, or None if the file has no primitives
        """
        reader = create_reader(input_file, self.progress_callback)
        reader.parse()
        if stats:
            reader.log_statistics()
        return reader.extract_model()

    def convert(self, input_file, output_dir, stem=None, center=False, normalize=False,
                stats=False):
        """Convert one manifest into a single-mesh manifest

        Args:
            input_file: Path to the input .gltf manifest
            output_dir: Output directory
            stem: Base name of the written files (default: <input stem>_mesh)
            center: Move the bounding-box center to the origin
            normalize: Center and scale so the largest bounding-box edge is 1
            stats: Log a statistics summary of the parsed document

        Returns:
            dict: Results with keys:
                - 'success': bool
                - 'gltf_file': written manifest path
                - 'bin_file': written payload path
                - 'vertex_count': int
                - 'triangle_count': int
                - 'message': Summary message
        """
        try:
            return self.convert_file(input_file, output_dir, stem, center, normalize, stats)
        except (MeshBridgeError, ValueError, OSError) as e:
            logger.error(f"Conversion failed: {input_file}: {e}")
            self.log(f"\nERROR: {e}")
            return {
                'success': False,
                'message': f"Conversion failed: {e}"
            }

    def convert_file(self, input_file, output_dir, stem=None, center=False, normalize=False,
                     stats=False):
        """Same as convert() but raises instead of returning a failure result

        Raises:
            StructuralError: If the manifest is malformed or has no primitives
            ResourceError: If a file cannot be read or written
        """
        input_path = Path(input_file)
        stem = stem or f"{input_path.stem}_mesh"

        self.log(f"\n{'='*60}")
        self.log(f"Input: {input_path}")
        self.log(f"Output: {output_dir}")
        self.log(f"{'='*60}")

        self.log("Step 1/3: Reading glTF file...")
        model = self.load_model(input_path, stats=stats)
        if model is None:
            raise StructuralError(f"No mesh primitives in {input_path}")

        if normalize:
            scale = mesh_ops.normalize_size(model)
            mesh_ops.center_vertices(model, scale)
            self.log(f"  Normalized size (scale {scale:.6g})")
        elif center:
            mesh_ops.center_vertices(model)
            self.log("  Centered vertices")

        self.log("Step 2/3: Building output document...")
        writer = GltfWriter(self.progress_callback)
        output_path = writer.validate_output_path(output_dir)
        bin_path = output_path / f"{stem}.bin"
        document = DocumentBuilder(self.progress_callback).build(model, bin_path)

        self.log("Step 3/3: Writing glTF file...")
        export = writer.export(document, output_path, stem)
        self.log(writer.get_export_summary(export))

        return {
            'success': True,
            'gltf_file': export['gltf_file'],
            'bin_file': str(bin_path),
            'vertex_count': model.vertex_count,
            'triangle_count': model.triangle_count,
            'message': f"{model.vertex_count} vertices, {model.triangle_count} triangles",
        }

    def convert_batch(self, input_files, output_dir, workers=config.DEFAULT_WORKERS,
                      center=False, normalize=False):
        """Convert many manifests in parallel

        A failing file is recorded in the result and does not stop the others.
        Inputs sharing a file name get numbered output stems so that no two
        files write to the same outputs.

        Returns:
            BatchResult: Per-file results and errors
        """
        input_files = list(dict.fromkeys(str(path) for path in input_files))
        stems = output_stems(input_files)

        def worker(path):
            # progress goes through the batch report, not the per-step log
            converter = MeshBridgeConverter()
            return converter.convert_file(path, output_dir, stem=stems[path],
                                          center=center, normalize=normalize)

        self.log(f"Batch: {len(input_files)} files, {workers} workers")
        return run_batch(input_files, worker, workers, self.progress_callback)


def output_stems(input_files):
    """Map each input path to a distinct output stem

    The first file named 'scene.gltf' gets 'scene_mesh'; later ones get
    'scene_mesh_2', 'scene_mesh_3', ... skipping stems already taken.

    Args:
        input_files: Input paths as strings, without duplicates

    Returns:
        dict: Input path -> output stem
    """
    stems = {}
    taken = set()
    for path in input_files:
        base = f"{Path(path).stem}_mesh"
        stem, n = base, 1
        while stem.lower() in taken:
            n += 1
            stem = f"{base}_{n}"
        if stem != base:
            logger.info(f"{path}: output renamed to {stem} (file name already used in this batch)")
        taken.add(stem.lower())
        stems[path] = stem
    return stems
