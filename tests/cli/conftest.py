import json

import pytest


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            [
                {"resource": "/.*/", "actions": ["GET"], "roles": ["*"]},
                {"resource": "/^\\/admin$/", "actions": ["GET", "POST"], "roles": ["admin"]},
            ]
        ),
        encoding="utf-8",
    )
    return str(path)
