'''
examples/steering_example.py
----------------------------
An example of how to:
  - integrate a survey listing and flag suspect surveys
  - calculate the steering numbers for the next slide, with an operator
  override
  - check the bit position against a target line
  - render a frame of the trajectory viewer to a plotly figure
'''
import logging

import wellsteer as ws

ws.logging_config.setup_logging(logging.DEBUG)

stations = [
    {'md': 0, 'inc': 0, 'azi': 0},
    {'md': 1500, 'inc': 0.5, 'azi': 0},
    {'md': 2000, 'inc': 12, 'azi': 85, 'gamma': 35},
    {'md': 2100, 'inc': 15, 'azi': 87, 'gamma': 48},
    {'md': 2100, 'inc': 15, 'azi': 87},  # duplicate, dropped
    {'md': 2200, 'inc': 18.5, 'azi': 88, 'gamma': 72},
]

trajectory = ws.survey.Trajectory(stations, name='Example-1H')
print(trajectory.to_df())

# steering numbers for the next 30 ft slide, sliding at the last survey
manual = ws.curve.ManualInputs().update('bend_angle', 1.83)
curve = ws.curve.calculate_curve_data(
    trajectory.points,
    ws.station.CurveParameters(target_inc=90, target_azi=90),
    live=ws.curve.LiveData(rotary_rpm=0),
    manual=manual,
)
print(curve)

# where is the bit relative to the landing target?
target = ws.station.TargetLine(tvd=2800, vertical_section=600, azi=90)
latest = trajectory.latest
print(ws.target.evaluate_target_line(
    latest.tvd, latest.n, latest.e, latest.azi, target, inc=latest.inc
))

# render a frame, stepping back one station and letting the camera settle
camera = ws.camera.Camera()
camera.previous_station(trajectory.points)
while camera.update():
    pass

surface = ws.visual.FigureSurface(800, 600)
ws.visual.render(
    trajectory.points, [], camera, surface, 800, 600,
    curve=curve, manual=manual, target=target
)
surface.fig.show()

# and the static plan and section views
ws.visual.figure(trajectory, type='panel').show()
