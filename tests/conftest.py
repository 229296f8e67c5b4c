"""
Shared test configuration, fixtures, and markers for rasterstack tests.
"""

import netCDF4
import numpy as np
import pytest


def pytest_configure(config):
    """Configure test markers."""
    config.addinivalue_line("markers", "property: marks property-based tests")
    config.addinivalue_line("markers", "unit: marks unit tests (fast, pure logic)")
    config.addinivalue_line("markers", "integration: marks tests reading and writing files")


@pytest.fixture
def lonlat_nc(tmp_path):
    """NetCDF file with a float32 ``tas`` variable on lon/lat/time and an int ``mask`` on lon/lat."""
    path = tmp_path / "lonlat.nc"
    with netCDF4.Dataset(str(path), "w", format="NETCDF4") as ds:
        ds.title = "test file"
        ds.createDimension("lon", 4)
        ds.createDimension("lat", 3)
        ds.createDimension("time", 2)

        lon = ds.createVariable("lon", "f8", ("lon",))
        lon[:] = [0.5, 1.5, 2.5, 3.5]
        lon.units = "degrees_east"
        lat = ds.createVariable("lat", "f8", ("lat",))
        lat[:] = [12.5, 11.5, 10.5]
        lat.units = "degrees_north"
        time = ds.createVariable("time", "f8", ("time",))
        time.units = "days since 2000-01-01 00:00:00"
        time.calendar = "standard"
        time[:] = [0, 1]

        tas = ds.createVariable("tas", "f4", ("lon", "lat", "time"), fill_value=-999.0)
        data = np.arange(24, dtype="f4").reshape(4, 3, 2)
        data[0, 0, 0] = -999.0
        tas[:] = data
        tas.units = "K"

        mask = ds.createVariable("mask", "i4", ("lon", "lat"))
        mask[:] = np.arange(12, dtype="i4").reshape(4, 3)
    return path


@pytest.fixture
def bounds_nc(tmp_path):
    """NetCDF file whose ``lev`` coordinate has a bounds variable."""
    path = tmp_path / "bounds.nc"
    with netCDF4.Dataset(str(path), "w", format="NETCDF4") as ds:
        ds.createDimension("lev", 3)
        ds.createDimension("bnds", 2)
        lev = ds.createVariable("lev", "f8", ("lev",))
        lev[:] = [5.0, 15.0, 40.0]
        lev.bounds = "lev_bnds"
        lev_bnds = ds.createVariable("lev_bnds", "f8", ("lev", "bnds"))
        lev_bnds[:] = [[0.0, 10.0], [10.0, 20.0], [20.0, 60.0]]
        temp = ds.createVariable("temp", "f8", ("lev",))
        temp[:] = [1.0, 2.0, 3.0]
    return path


@pytest.fixture
def missing_bounds_nc(tmp_path):
    """NetCDF file whose ``lev`` coordinate references a missing bounds variable."""
    path = tmp_path / "missing_bounds.nc"
    with netCDF4.Dataset(str(path), "w", format="NETCDF4") as ds:
        ds.createDimension("lev", 2)
        lev = ds.createVariable("lev", "f8", ("lev",))
        lev[:] = [1.0, 2.0]
        lev.bounds = "lev_bnds"
        temp = ds.createVariable("temp", "f8", ("lev",))
        temp[:] = [1.0, 2.0]
    return path
