"""
Shared fixtures: a miniature bundle with the same shapes as the real
Claude Code ``cli.js`` (one statement per line for readable failures).
"""

from __future__ import annotations

import pytest


BUNDLE = r'''#!/usr/bin/env node
// Version: 2.1.5
var R=require("react");
function Hd({children:A}){let B=[];for(let C of A.split("\n\n"))B.push(R.default.createElement(M8,{key:B.length},C.trim()));return R.default.createElement(R.default.Fragment,null,B)}
var M8=R.default.memo(function({children:A}){if(typeof A!=="string")return R.default.createElement(DF,null,String(A));let B=Object.keys(A);if(B.length===1)return R.default.createElement(DF,null,A);return R.default.createElement(DF,null,B.join(""))});
function Banner({param:A,isTranscriptMode:B,verbose:C}){if(!(B||C))return R.default.createElement(T,{dimColor:!0},"∴ Thinking (","ctrl+o",")");return R.default.createElement(Box,{flexDirection:"column"},R.default.createElement(T,{dimColor:!0,italic:!0},"∴ Thinking…"),R.default.createElement(Box,{paddingLeft:2},R.default.createElement(Hd,null,A.thinking)))}
function Msg({param:A,isTranscriptMode:B,verbose:C,hide:D}){switch(A.type){case"text":return null;case"thinking":{if(!B&&!C)return null;return R.default.createElement(Banner,{addMargin:!1,param:A,isTranscriptMode:B,verbose:C,hideInTranscript:D})}default:return null}}
'''

# The same bundle after a visibility-only run
VISIBLE_BUNDLE = (
    BUNDLE
    .replace("if(!(B||C))", "if(!1)")
    .replace("{if(!B&&!C)return null;return", "{return")
    .replace("isTranscriptMode:B,verbose:C,hideInTranscript:D",
             "isTranscriptMode:!0,verbose:C,hideInTranscript:!1")
)

HEADER = "#ff69b4"
CONTENT = "#87ceeb"


@pytest.fixture()
def bundle_bytes() -> bytes:
    return BUNDLE.encode("utf-8")


@pytest.fixture()
def bundle_file(tmp_path):
    """Write the bundle as ``cli.js`` and return its path."""
    p = tmp_path / "cli.js"
    p.write_bytes(BUNDLE.encode("utf-8"))
    return str(p)


@pytest.fixture()
def isolated_env(tmp_path, monkeypatch):
    """Keep user config files and THINKER_* variables out of the test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for key in ("TARGET", "BACKUP_SUFFIX", "GRAMMARS", "CONTENT_WINDOW",
                "LOG_DIR", "THEME", "COLOR", "CONTENT_COLOR"):
        monkeypatch.delenv(f"THINKER_{key}", raising=False)
    return tmp_path
