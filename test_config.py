import config


def test_method_config_is_a_copy():
    cfg = config.get_config_for_method('GA')
    cfg['population'] = 2
    assert config.GA_CONFIG['population'] == 32
    assert config.get_config_for_method('ilp') == config.ILP_CONFIG


def test_baselines_have_no_config():
    assert config.get_config_for_method('random') == {}
    assert config.get_config_for_method('seq') == {}


def test_aggressor_region_in_nm():
    assert config.aggressor_region_nm(1, 1) == (config.NAND_WIDTH, config.ROW_HEIGHT)
    assert config.aggressor_region_nm() == (200 * 1920, 8 * 2880)


def test_log_current_config(caplog):
    config.log_current_config()
    assert "AggressorRegionSizeNM X 384000 Y 23040" in caplog.text
    assert "GeneticSearch" in caplog.text
