"""Shared pytest fixtures for tokentrim tests."""

import json

import pytest

from tokentrim.languages import DEFAULT_REGISTRY
from tokentrim.transforms.base import CompressionRequest


@pytest.fixture
def registry():
    """The built-in language registry."""
    return DEFAULT_REGISTRY


@pytest.fixture
def request_minimal():
    """Default compression request (MINIMAL level)."""
    return CompressionRequest()


@pytest.fixture
def rust_source():
    """Rust source with a line comment and a 5-line function body."""
    return """// Entry point
fn main() {
    let x = 1;
    let y = 2;
    let z = x + y;
    println!("{}", z);
    println!("done");
}
"""


@pytest.fixture
def python_source():
    """Python module with comments, a docstring and two functions."""
    return '''#!/usr/bin/env python3
"""Module docstring # not a comment."""

import os  # standard library


# Helper section
def load(path):
    with open(path) as f:
        data = f.read()
    lines = data.splitlines()
    return [line for line in lines if line]


class Loader:
    def run(self):
        items = load(os.environ["INPUT"])
        for item in items:
            print(item)
        return len(items)
'''


@pytest.fixture
def three_file_diff():
    """git diff touching three files: (+10/-2), (+0/-5), (+3/-0)."""
    first = (
        "diff --git a/src/main.rs b/src/main.rs\n"
        "index 1111111..2222222 100644\n"
        "--- a/src/main.rs\n"
        "+++ b/src/main.rs\n"
        "@@ -1,5 +1,13 @@\n"
        " fn main() {\n"
        + "".join(f"+    let v{i} = {i};\n" for i in range(10))
        + "-    old_call();\n"
        "-    other_call();\n"
        " }\n"
        " \n"
    )
    second = (
        "diff --git a/src/old.rs b/src/old.rs\n"
        "deleted file mode 100644\n"
        "index 3333333..0000000\n"
        "--- a/src/old.rs\n"
        "+++ /dev/null\n"
        "@@ -1,5 +0,0 @@\n" + "".join(f"-line {i}\n" for i in range(5))
    )
    third = (
        "diff --git a/README.md b/README.md\n"
        "new file mode 100644\n"
        "index 0000000..4444444\n"
        "--- /dev/null\n"
        "+++ b/README.md\n"
        "@@ -0,0 +1,3 @@\n"
        "+# Title\n"
        "+\n"
        "+Body\n"
    )
    return first + second + third


@pytest.fixture
def timestamped_log():
    """100 log lines identical except for their timestamp."""
    return "\n".join(
        f"2024-01-15T10:{i // 60:02d}:{i % 60:02d}.{i:03d}Z INFO worker heartbeat ok"
        for i in range(100)
    )


@pytest.fixture
def api_response():
    """JSON API response with a list of records."""
    return json.dumps(
        {
            "status": "ok",
            "count": 100,
            "items": [
                {"id": i, "name": f"Item {i}", "score": i * 0.1, "active": i % 2 == 0}
                for i in range(100)
            ],
            "next": None,
        }
    )
