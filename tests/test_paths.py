import pytest

from mediastore.errors import ValidationError
from mediastore.paths import PathResolver, folder_segments


@pytest.fixture
def resolver(tmp_path):
    return PathResolver(tmp_path)


def test_resolve_without_folder(resolver, tmp_path):
    assert resolver.resolve("proj", "a.jpg") == tmp_path.resolve() / "proj" / "a.jpg"


def test_resolve_with_nested_folder(resolver, tmp_path):
    path = resolver.resolve("proj", "a.jpg", "thumbs/2024")
    assert path == tmp_path.resolve() / "proj" / "thumbs" / "2024" / "a.jpg"


def test_backslash_folder_is_split(resolver, tmp_path):
    path = resolver.resolve("proj", "a.jpg", "thumbs\\small")
    assert path == tmp_path.resolve() / "proj" / "thumbs" / "small" / "a.jpg"


def test_external_path_uses_forward_slashes(resolver):
    assert resolver.to_external_path("proj", "a.jpg") == "proj/a.jpg"
    assert resolver.to_external_path("proj", "a.jpg", "x\\y") == "proj/x/y/a.jpg"
    assert resolver.to_external_path("proj", "a.jpg", "x//y/") == "proj/x/y/a.jpg"


def test_empty_folder_means_no_folder(resolver):
    assert folder_segments("") == []
    assert folder_segments(None) == []
    assert resolver.directory("proj", "") == resolver.directory("proj")


@pytest.mark.parametrize("project", ["..", ".", "a/b", "a\\b", "", "c:evil"])
def test_bad_project_rejected(resolver, project):
    with pytest.raises(ValidationError):
        resolver.directory(project)


@pytest.mark.parametrize("folder", ["../other", "a/../../b", "/etc", "\\share", "a/./b"])
def test_bad_folder_rejected(resolver, folder):
    with pytest.raises(ValidationError):
        resolver.directory("proj", folder)


@pytest.mark.parametrize("file_name", ["..", "../x.jpg", "sub/x.jpg", "x\x00.jpg"])
def test_bad_file_name_rejected(resolver, file_name):
    with pytest.raises(ValidationError):
        resolver.resolve("proj", file_name)


def test_symlink_escape_rejected(tmp_path):
    root = tmp_path / "root"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "proj").symlink_to(outside, target_is_directory=True)
    with pytest.raises(ValidationError):
        PathResolver(root).resolve("proj", "a.jpg")
