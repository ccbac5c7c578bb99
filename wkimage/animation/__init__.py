"""Animation frames, frame sequences, motion estimation and compensation."""