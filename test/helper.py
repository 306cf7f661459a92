"""
Help rendering tests.

Scope
- Validate the usage line for nested commands and aliases.
- Validate the option, argument and command sections of the plain text help.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import program
from helmsman import helper


class TestHelper(TestCase):
    """Behavioral tests for help rendering."""

    def testUsageOfRoot(self):
        cli = program("git")
        cli.command("clone <repo>")
        self.assertEqual(helper.usage(cli), "Usage: git [options] [command]")

    def testUsageOfNestedAliasedCommand(self):
        cli = program("git")
        remote = cli.command("remote").alias("rm").arguments("<name>")
        self.assertEqual(helper.usage(remote), "Usage: git remote|rm [options] <name>")

    def testCustomUsage(self):
        cli = program("git").usage("<anything>")
        self.assertEqual(helper.usage(cli), "Usage: git <anything>")

    def testOptionsSection(self):
        cli = program("pizza")
        cli.option("-p, --pepper", "add pepper")
        cli.option("--no-sauce", "remove sauce")
        text = helper.plain(cli)
        self.assertIn("Options:", text)
        self.assertIn("-p, --pepper", text)
        self.assertIn("remove sauce", text)
        self.assertNotIn("(default: true)", text)
        self.assertIn("-h, --help", text)

    def testArgumentsSection(self):
        cli = program("copy").arguments("<source> [destination]")
        cli.description("copy files", {"source": "file to read", "destination": "file to write"})
        text = helper.plain(cli)
        self.assertIn("copy files", text)
        self.assertIn("Arguments:", text)
        self.assertIn("file to read", text)

    def testCommandsSection(self):
        cli = program("git")
        cli.command("clone <repo> [dir]").description("clone a repository").option("--depth <n>")
        text = helper.plain(cli)
        self.assertIn("Commands:", text)
        self.assertIn("clone [options] <repo> [dir]", text)
        self.assertIn("clone a repository", text)
        self.assertIn("help [command]", text)

    def testNoCommandsSectionForLeaf(self):
        self.assertNotIn("Commands:", helper.plain(program("leaf")))


if __name__ == "__main__":
    unittest.main()
