"""Shared test fixtures for archtest."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archtest.catalog.tokenizer import clear_cache

if TYPE_CHECKING:
    from pathlib import Path


SERVICE_PHP = """<?php
namespace App\\Service;

use App\\Contract\\Bar;

final class UserService implements Bar
{
    public function __construct() {}
    public function find(int $id) {}
    protected function load() {}
}
"""

MAILER_PHP = """<?php
namespace App\\Service;

class Mailer
{
    public function send() {}
}
"""

CONTRACT_PHP = """<?php
namespace App\\Contract;

interface Bar
{
    public function run();
}
"""

ABSTRACT_PHP = """<?php
namespace App\\Service;

abstract class BaseService
{
    abstract public function handle();
}
"""

HANDLER_PHP = """<?php
namespace App\\Handler;

use App\\Service\\BaseService;

class CreateUserHandler extends BaseService
{
    public function __invoke() {}
    public function handle() {}
}
"""


@pytest.fixture(autouse=True)
def _clear_lang_cache() -> None:
    """Clear language cache before each test to avoid cross-test pollution."""
    clear_cache()


@pytest.fixture()
def php_project(tmp_path: Path) -> Path:
    """Create a small PHP project with ``src/`` sources and a composer.json."""
    src = tmp_path / "src"
    (src / "Service").mkdir(parents=True)
    (src / "Contract").mkdir()
    (src / "Handler").mkdir()
    (src / "Service" / "UserService.php").write_text(SERVICE_PHP)
    (src / "Service" / "Mailer.php").write_text(MAILER_PHP)
    (src / "Service" / "BaseService.php").write_text(ABSTRACT_PHP)
    (src / "Contract" / "Bar.php").write_text(CONTRACT_PHP)
    (src / "Handler" / "CreateUserHandler.php").write_text(HANDLER_PHP)
    (tmp_path / "composer.json").write_text('{"autoload": {"psr-4": {"App\\\\": "src/"}}}')
    return tmp_path
