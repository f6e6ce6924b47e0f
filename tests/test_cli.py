"""
Tests for the command line interface.
"""

import json

from PIL import Image

from dupematch.cli import main, create_parser


class TestCreateParser:
    """Test argument parsing."""

    def test_defaults(self, isolated_config):
        args = create_parser().parse_args(['refs', 'a.png'])
        assert args.threshold == 85.0
        assert args.descriptor == 'gradient'
        assert args.hash_only is False
        assert [str(q) for q in args.queries] == ['a.png']

    def test_options(self, isolated_config):
        args = create_parser().parse_args(
            ['refs', 'a.png', 'b.png', '-t', '92', '--hash-only', '--descriptor', 'none', '-w', '2']
        )
        assert args.threshold == 92.0
        assert args.hash_only is True
        assert args.descriptor == 'none'
        assert args.workers == 2
        assert len(args.queries) == 2


class TestMain:
    """Test the CLI entry point end to end."""

    def test_json_output(self, isolated_config, reference_dir, temp_dir, capsys):
        red = temp_dir / "query_red.png"
        blue = temp_dir / "query_blue.png"
        Image.new('RGB', (60, 60), color='red').save(red)
        Image.new('RGB', (60, 60), color='blue').save(blue)

        assert main([str(reference_dir), str(red), str(blue), '--json', '--hash-only']) == 0
        results = json.loads(capsys.readouterr().out)

        assert results[0]['query'] == str(red)
        assert results[0]['matched'] is True
        assert results[0]['filename'] == 'red.png'
        assert results[0]['method'] == 'hash'
        assert results[1]['matched'] is False

    def test_unreadable_query(self, isolated_config, reference_dir, temp_dir, capsys):
        bad = temp_dir / "bad.png"
        bad.write_bytes(b"nope")
        assert main([str(reference_dir), str(bad), '--json']) == 0
        results = json.loads(capsys.readouterr().out)
        assert 'error' in results[0]

    def test_text_output(self, isolated_config, reference_dir, temp_dir, capsys):
        red = temp_dir / "query.png"
        Image.new('RGB', (60, 60), color='red').save(red)
        assert main([str(reference_dir), str(red)]) == 0
        out = capsys.readouterr().out
        assert 'red.png' in out
        assert '1 of 1 images matched' in out

    def test_missing_reference_dir(self, isolated_config, temp_dir, capsys):
        assert main([str(temp_dir / "missing"), 'a.png']) == 1
        assert 'Error' in capsys.readouterr().err
