from hs_pci import paths as P


def test_paths_exist_and_writable():
    P.ensure_dirs()
    assert P.REPO_ROOT.exists()
    for p in (P.DATA_RAW, P.DATA_WORK, P.DATA_OUTPUT, P.FIGURES):
        assert p.exists()
        assert p.is_dir()


def test_default_inputs_live_under_data_raw():
    for p in (P.PANEL_CSV, P.DICTIONARY_JSON, P.CROSSWALK_CSV, P.TITLES_CSV):
        assert p.parent == P.DATA_RAW
