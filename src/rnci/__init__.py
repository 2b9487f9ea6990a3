from .compiler import compile_config, generate_workflow_yaml
from .config import AdvancedOptions, FormValues
from .extractor import ExtractedCommand, extract_all_commands, extract_build_commands, extract_test_commands
from .matrix import MatrixEntry, generate_matrix
from .signature import command_signature

__all__ = [
    "compile_config",
    "generate_workflow_yaml",
    "AdvancedOptions",
    "FormValues",
    "ExtractedCommand",
    "extract_all_commands",
    "extract_build_commands",
    "extract_test_commands",
    "MatrixEntry",
    "generate_matrix",
    "command_signature",
]
