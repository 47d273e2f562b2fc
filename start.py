#!/usr/bin/env python3
"""vcf-report — VCF contact report.  Run with:  python3 start.py <file.vcf>"""
import os
import sys

script_dir = os.path.dirname(os.path.abspath(__file__))
src_dir    = os.path.join(script_dir, "src")

sys.path.insert(0, src_dir)

from vcf_report.cli import app
app()
