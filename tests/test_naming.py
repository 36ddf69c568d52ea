import re
import ast
from pathlib import Path
from typing import List

import pytest

SERVICES_DIR = Path(__file__).resolve().parent.parent / "app" / "services"

COMMON_VERBS = {
    'get', 'set', 'create', 'update', 'delete', 'validate',
    'check', 'process', 'handle', 'generate', 'send', 'receive'
}

CLASS_PATTERN = re.compile(r'^\s*class\s+([A-Za-z0-9]+)(\(|:)')
VARIABLE_PATTERN = re.compile(r'\b([A-Za-z0-9_]+)\s*=\s*[^#]*')


def get_service_files() -> List[Path]:
    return sorted(
        path for path in SERVICES_DIR.rglob("*.py")
        if path.name != "__init__.py"
    )


def check_class_naming(code: str) -> List[str]:
    """Clases en CamelCase y en singular."""
    errors = []
    for line_no, line in enumerate(code.split('\n'), 1):
        match = CLASS_PATTERN.match(line)
        if not match:
            continue
        class_name = match.group(1)
        if not re.fullmatch(r'([A-Z][a-z0-9]*)+', class_name):
            errors.append(f"{line_no}: clase '{class_name}' no está en CamelCase")
        if class_name.endswith('s') and len(class_name) > 3:
            errors.append(f"{line_no}: clase '{class_name}' parece estar en plural")
    return errors


def check_snake_case_naming(code: str) -> List[str]:
    """Variables en snake_case; las constantes en mayúsculas se ignoran."""
    errors = []
    for line_no, line in enumerate(code.split('\n'), 1):
        clean_line = re.sub(r'#.*', '', line)
        for match in VARIABLE_PATTERN.finditer(clean_line):
            name = match.group(1)
            if name.isupper():
                continue
            if not re.fullmatch(r'[a-z][a-z0-9_]*', name):
                errors.append(f"{line_no}: variable '{name}' no está en snake_case")
    return errors


def check_function_verbs(code: str) -> List[str]:
    """
    Las funciones públicas síncronas empiezan con un verbo común.
    Las corrutinas de servicio quedan fuera: sus nombres siguen a la operación
    de negocio (accept_..., list_..., add_...).
    """
    errors = []
    for node in ast.walk(ast.parse(code)):
        if isinstance(node, ast.FunctionDef) and not node.name.startswith('_'):
            if node.name.split('_')[0] not in COMMON_VERBS:
                errors.append(f"{node.lineno}: función '{node.name}' no comienza con un verbo común")
    return errors


@pytest.mark.parametrize(
    "path", get_service_files(), ids=lambda path: str(path.relative_to(SERVICES_DIR))
)
def test_service_naming_conventions(path):
    code = path.read_text(encoding="utf-8")

    errors = check_class_naming(code) + check_snake_case_naming(code) + check_function_verbs(code)

    assert not errors, f"{path.name}:\n" + "\n".join(errors)


def test_services_are_found():
    assert get_service_files()
